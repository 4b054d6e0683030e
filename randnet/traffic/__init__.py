"""Traffic generation for network simulation.

This module provides interval and payload size generators used to drive
message sources in the simulated network.
"""
