from abc import ABC, abstractmethod
from typing import Any, Iterator, Mapping, Optional, TypeVar, TYPE_CHECKING

from randnet.core.errors import NoRouteError
from randnet.core.extractor import try_extract
from randnet.core.packet import decode_packet, encode_packet
from randnet.utils.rng import CustomRNG

if TYPE_CHECKING:
    from randnet.core.link import Link
    from randnet.core.node import Node

L = TypeVar("L")


def select_link(destination: int, links: Mapping[int, L], rng: Any) -> L:
    """
    Choose the link a packet for `destination` is transmitted on.

    A directly attached destination always gets its own link; otherwise every
    attached link is equally likely.

    Args:
        destination: Address the packet is sent to.
        links: Attached links keyed by neighbour address. Never modified.
        rng: Random source providing `choice`.

    Returns:
        The selected link.

    Raises:
        NoRouteError: If no link is attached.
    """
    if destination in links:
        return links[destination]
    if not links:
        raise NoRouteError(f"No links available to reach {destination}")
    return links[rng.choice(list(links.keys()))]


class Router(ABC):
    """Abstract base class for routing strategies.

    A router is composed into a node and reads the node's address, links and
    client. Framing and extraction are shared by all strategies; only link
    selection differs.
    """

    def __init__(self, node: "Node") -> None:
        """
        Initialize the router.

        Args:
            node: The node associated with this router.
        """
        self.name = "Base Router"
        self.node = node

    def create_packet(self, destination: int, data: bytes) -> bytes:
        """
        Frame data sent from this node.

        Raises:
            EncodingError: If the data does not fit in one packet.
        """
        return encode_packet(destination, self.node.address, data)

    @abstractmethod
    def route(self, destination: int) -> "Link":
        """
        Select the link to transmit a packet for `destination` on.

        Raises:
            NoRouteError: If no link can be selected.
        """
        pass

    def extract_packet(self, buffer: bytearray) -> Optional[bytes]:
        """
        Remove a whole packet from a receive buffer, if one is present.
        """
        return try_extract(buffer)

    def extract_packets(self, buffer: bytearray) -> Iterator[bytes]:
        """
        Yield whole packets from a receive buffer until only a partial packet is left.

        Packets are removed one at a time, as they are consumed.
        """
        packet = self.extract_packet(buffer)
        while packet is not None:
            yield packet
            packet = self.extract_packet(buffer)

    def process_packet(self, packet: bytes) -> None:
        """
        Deliver a received packet locally or forward it unchanged.

        Failures from the decoder, the router or the link propagate.

        Args:
            packet: A complete packet extracted from a receive buffer.
        """
        destination, _, payload = decode_packet(packet)
        if destination == self.node.address:
            self.node.client.receive(payload)
            return
        self.route(destination).send(packet)

    def __repr__(self) -> str:
        return self.name


class RandomRouter(Router):
    """Router that sends to a directly attached destination, and to a random neighbour otherwise."""

    def __init__(self, node: "Node", seed: Optional[int] = 42, rng: Any = None) -> None:
        """
        Initialize the random router.

        Args:
            node: The node associated with this router.
            seed: Seed for the router's own random number generator.
            rng: A random source providing `choice`; overrides `seed`.
        """
        super().__init__(node)
        self.name = "Random"
        self.rng = rng if rng is not None else CustomRNG(seed)

    def route(self, destination: int) -> "Link":
        return select_link(destination, self.node.links, self.rng)


class DijkstraRouter(Router):
    """Router using the node's shortest path routing table."""

    def __init__(self, node: "Node") -> None:
        super().__init__(node)
        self.name = "Dijkstra"

    def route(self, destination: int) -> "Link":
        """
        Route using the shortest path next hop.

        Args:
            destination: Address the packet is sent to.

        Returns:
            The link towards the next hop.
        """
        links = self.node.links
        if destination in links:
            return links[destination]
        next_hop = self.node.routing_table.get(destination)
        if next_hop is None or next_hop not in links:
            raise NoRouteError(f"No route found for destination {destination}.")
        return links[next_hop]


def router_factory(router_type: str, node: "Node", seed: Optional[int] = 42) -> Router:
    """
    Factory function to create the appropriate router.

    Args:
        router_type: Type of the router ("Random" or "Dijkstra").
        node: The node to which the router is attached.
        seed: Seed for the random number generator. None seeds each router
            from system entropy.

    Returns:
        An instance of the selected routing strategy.
    """
    if router_type == "Random":
        # Offset by address so nodes sharing a seed do not pick in lockstep.
        return RandomRouter(node, seed=None if seed is None else seed + node.address)
    elif router_type == "Dijkstra":
        return DijkstraRouter(node)
    raise ValueError(f"Unknown router type: {router_type}")
