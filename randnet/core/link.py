"""Link class for network simulation.

This module defines the Link class, a one-directional byte transport
between two directly connected nodes in the simulated network.
"""

import simpy
from typing import Callable, Optional

from randnet.core.errors import LinkDownError

Receiver = Callable[[int, bytes], None]


class Link:
    """Represents a network link from one node to a neighbour.

    Attributes:
        env: SimPy environment.
        source: Source node address.
        target: Target node address.
        capacity: Link capacity in bits per second.
        propagation_delay: Propagation delay in seconds.
        chunk_size: If set, bytes are handed to the receiver in pieces of at
            most this size, as a stream transport would.
        up: Whether the link currently accepts data.
        packets_sent: Number of packets sent through this link.
        bytes_sent: Number of bytes sent through this link.
        resource: SimPy resource serialising transmissions.
    """

    def __init__(
        self,
        env: simpy.Environment,
        source: int,
        target: int,
        capacity: float,
        propagation_delay: float,
        chunk_size: Optional[int] = None,
    ):
        """Initialize a network link.

        Args:
            env: SimPy environment.
            source: Source node address.
            target: Target node address.
            capacity: Link capacity in bits per second.
            propagation_delay: Propagation delay in seconds.
            chunk_size: Maximum bytes per delivery to the receiver (default: whole packets).
        """
        if chunk_size is not None and chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.env = env
        self.source = source
        self.target = target
        self.capacity = capacity
        self.propagation_delay = propagation_delay
        self.chunk_size = chunk_size
        self.up = True
        self.packets_sent = 0
        self.bytes_sent = 0
        self.resource = simpy.Resource(env, capacity=1)
        self.receiver: Optional[Receiver] = None

    def connect(self, receiver: Receiver) -> None:
        """Attach the far end of the link.

        Args:
            receiver: Called with (source address, bytes) when data arrives.
        """
        self.receiver = receiver

    def set_up(self, up: bool) -> None:
        self.up = up

    def calculate_transmission_delay(self, size: int) -> float:
        """Calculate transmission delay based on data size and link capacity.

        Args:
            size: Number of bytes to transmit.

        Returns:
            Transmission delay in seconds.
        """
        return (size * 8) / self.capacity

    def send(self, data: bytes) -> simpy.events.Process:
        """Transmit bytes to the neighbour.

        Args:
            data: The bytes to transmit.

        Returns:
            SimPy process for the transmission.

        Raises:
            LinkDownError: If the link is down or has no receiver.
        """
        if not self.up:
            raise LinkDownError(f"{self!r} is down")
        if self.receiver is None:
            raise LinkDownError(f"{self!r} is not connected")

        data = bytes(data)
        self.packets_sent += 1
        self.bytes_sent += len(data)
        return self.env.process(self._transmit(data))

    def _transmit(self, data: bytes):
        with self.resource.request() as request:
            yield request
            yield self.env.timeout(self.calculate_transmission_delay(len(data)))

        yield self.env.timeout(self.propagation_delay)

        step = self.chunk_size or max(len(data), 1)
        for start in range(0, len(data), step):
            self.receiver(self.source, data[start : start + step])

    def __repr__(self) -> str:
        """Return string representation of the link.

        Returns:
            String representation of the link.
        """
        return f"Link({self.source}->{self.target}, {self.capacity/1000000:.1f}Mbps, {self.propagation_delay*1000:.1f}ms)"
