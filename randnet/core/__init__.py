"""Core components for the random-routing network layer.

This module contains the packet codec, the stream extractor, the routing
strategies, and the Link, Node and NetworkSimulator classes that host them.
"""
