"""Exceptions raised by the random-routing network layer.

Every error is raised synchronously to the immediate caller. The core never
recovers from them; the enclosing node decides whether to drop, count or
re-raise.
"""


class RoutingLayerError(Exception):
    """Base class for all errors raised by this package."""


class EncodingError(RoutingLayerError, ValueError):
    """A packet cannot be framed, e.g. its payload is too large for the length field."""


class MalformedPacketError(RoutingLayerError, ValueError):
    """Raw bytes are too short to hold a packet header."""


class NoRouteError(RoutingLayerError, LookupError):
    """No link exists through which delivery can be attempted."""


class LinkDownError(RoutingLayerError):
    """A link refused to transmit because it is down or unconnected."""
