"""Node class for network simulation.

This module defines the Node class, which hosts a routing strategy: it owns
the node's address, its attached links, one receive buffer per link and the
client that consumes delivered payloads, and it polls the buffers for packets.
"""

import simpy
from collections import Counter
from typing import Any, Callable, Dict, Optional, Type

from randnet.core.client import Client, RecordingClient
from randnet.core.errors import LinkDownError, MalformedPacketError, NoRouteError
from randnet.core.link import Link
from randnet.core.packet import MAX_ADDRESS
from randnet.core.routing_algorithms import Router

DROP_REASONS: Dict[Type[Exception], str] = {
    NoRouteError: "No route to destination",
    MalformedPacketError: "Malformed packet",
    LinkDownError: "Link down",
}


def drop_reason(error: Exception) -> str:
    for error_type, reason in DROP_REASONS.items():
        if isinstance(error, error_type):
            return reason
    return type(error).__name__


class Node:
    """Represents a network node.

    Attributes:
        env: SimPy environment.
        address: Unique 32-bit address of the node.
        router: Routing strategy composed into this node.
        client: Consumer of payloads addressed to this node.
        links: Outgoing links keyed by neighbour address.
        buffers: Receive buffers keyed by neighbour address.
        routing_table: Next hop for each destination, used by shortest path routing.
        packets_sent: Number of packets originated by this node.
        packets_received: Number of whole packets extracted from the buffers.
        packets_dropped: Number of received packets that could not be handled.
        drop_reasons: Count of dropped packets per reason.
    """

    def __init__(
        self,
        env: simpy.Environment,
        address: int,
        router_func: Callable[["Node"], Router],
        client: Optional[Client] = None,
        poll_interval: float = 0.01,
        debug: bool = False,
        hook: Optional[Callable[..., Any]] = None,
    ) -> None:
        """Initialize a network node.

        Args:
            env: SimPy environment.
            address: Unique address of the node.
            router_func: Function to create the routing strategy for this node.
            client: Consumer of delivered payloads (default: a RecordingClient).
            poll_interval: Time between two polls of the receive buffers.
            debug: Whether to print a trace of the packets handled.
            hook: Called with an event type and its arguments, e.g. on drops.
        """
        if not 0 <= address <= MAX_ADDRESS:
            raise ValueError(f"Address {address} is not a 32-bit unsigned value")
        self.env = env
        self.address = address
        self.client: Client = client if client is not None else RecordingClient()
        self.poll_interval = poll_interval
        self.debug = debug
        self.hook = hook
        self.links: Dict[int, Link] = {}
        self.buffers: Dict[int, bytearray] = {}
        self.routing_table: Dict[int, int] = {}
        self.packets_sent = 0
        self.packets_received = 0
        self.packets_dropped = 0
        self.drop_reasons: Counter = Counter()
        self.router: Router = router_func(self)
        if self.router is None:
            raise ValueError("router_func did not return a router.")

        def update():
            while True:
                yield self.env.timeout(self.poll_interval)
                self.poll()

        self.env.process(update())

    def add_link(self, link: Link) -> None:
        """Add an outgoing link from this node.

        Args:
            link: The link to add.
        """
        if link.source != self.address or link.target == self.address:
            raise ValueError("Link source or destination is incorrect for this node. Verify the link's configuration.")
        self.links[link.target] = link
        self.buffers.setdefault(link.target, bytearray())

    def set_routing_table(self, routing_table: Dict[int, int]) -> None:
        """Set the routing table for this node.

        Args:
            routing_table: Dictionary mapping destinations to next hops.
        """
        self.routing_table = routing_table

    def receive_bytes(self, neighbour: int, data: bytes) -> None:
        """Append bytes arriving from a neighbour to its receive buffer.

        Args:
            neighbour: Address of the node at the other end of the link.
            data: The bytes received, possibly a partial packet.
        """
        self.buffers.setdefault(neighbour, bytearray()).extend(data)

    def send(self, destination: int, data: bytes) -> None:
        """Send data from the local client to a destination.

        Errors from framing, routing and the link propagate to the caller.

        Args:
            destination: Address of the receiving node.
            data: Payload to send.
        """
        if destination == self.address:
            self.client.receive(bytes(data))
            return
        packet = self.router.create_packet(destination, data)
        link = self.router.route(destination)
        link.send(packet)
        self.packets_sent += 1
        if self.debug:
            print(f"[{self.env.now:.4f}] {self}: sent {len(packet)} bytes for {destination} via {link}")

    def poll(self) -> int:
        """Extract and process every whole packet waiting in the receive buffers.

        Returns:
            The number of packets processed.
        """
        processed = 0
        # Hooks reached from process_packet may add links and buffers.
        for neighbour, buffer in list(self.buffers.items()):
            for packet in self.router.extract_packets(buffer):
                processed += 1
                self.packets_received += 1
                if self.debug:
                    print(f"[{self.env.now:.4f}] {self}: packet of {len(packet)} bytes from {neighbour}")
                try:
                    self.router.process_packet(packet)
                except (NoRouteError, MalformedPacketError, LinkDownError) as error:
                    self.packet_dropped(packet, drop_reason(error), error)
        return processed

    def packet_dropped(self, packet: bytes, reason: str, error: Exception) -> None:
        """Handle a packet that could not be delivered or forwarded.

        Args:
            packet: The packet that was dropped.
            reason: Reason for dropping the packet.
            error: The error raised while processing it.
        """
        self.packets_dropped += 1
        self.drop_reasons[reason] += 1
        if self.debug:
            print(f"[{self.env.now:.4f}] {self}: dropped packet ({reason}: {error})")
        if self.hook is not None:
            self.hook("packet_dropped", packet, self, reason, self.env.now)

    def __repr__(self) -> str:
        """Return string representation of the node.

        Returns:
            String representation of the node.
        """
        return f"Node({self.address})"
