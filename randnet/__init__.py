"""Random-routing network layer with a SimPy network simulator."""
