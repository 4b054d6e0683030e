"""Utilities for network simulation: RNG, metrics and visualization."""
