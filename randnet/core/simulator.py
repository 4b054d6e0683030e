"""Network simulator class for network simulation.

This module defines the NetworkSimulator class, which builds a network of
nodes running one routing strategy, drives traffic through it and collects
performance metrics.
"""

import simpy
import networkx as nx
import numpy as np
from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Tuple

from randnet.core.client import RecordingClient
from randnet.core.errors import RoutingLayerError
from randnet.core.link import Link
from randnet.core.message import MESSAGE_ID_SIZE, Message
from randnet.core.node import Node, drop_reason
from randnet.core.packet import MAX_PAYLOAD_SIZE, decode_packet
from randnet.core.routing_algorithms import router_factory


class NetworkSimulator:
    """Network simulation environment.

    Attributes:
        env: SimPy environment.
        router_type: Routing strategy used by every node.
        rng: NumPy random generator for traffic.
        graph: NetworkX directed graph representing the network.
        nodes: Node objects keyed by address.
        links: Link objects keyed by (source, destination) tuple.
        generators: (source, destination) pairs with a running traffic generator.
        messages: All messages sent, keyed by id.
        completed_messages: Messages that reached their destination.
        dropped_messages: Messages that were dropped, with the reason.
        metrics: Performance metrics for the simulation.
    """

    def __init__(
        self,
        env: simpy.Environment,
        router_type: str,
        seed: int = 42,
        chunk_size: Optional[int] = None,
        poll_interval: float = 0.01,
        debug: bool = False,
    ):
        """Initialize the network simulator.

        Args:
            env: SimPy environment.
            router_type: The router type that is used ("Random" or "Dijkstra").
            seed: Random seed for reproducibility.
            chunk_size: Maximum bytes per link delivery (default: whole packets).
            poll_interval: Time between two polls of a node's receive buffers.
            debug: Whether nodes print a trace of the packets they handle.
        """
        self.env = env
        self.router_type = router_type
        self.seed = seed
        self.chunk_size = chunk_size
        self.poll_interval = poll_interval
        self.debug = debug
        self.rng = np.random.default_rng(seed)
        self.graph = nx.DiGraph()
        self.nodes: Dict[int, Node] = {}
        self.links: Dict[Tuple[int, int], Link] = {}
        self.generators: List[Tuple[int, int]] = []
        self.messages: Dict[int, Message] = {}
        self.completed_messages: List[Message] = []
        self.dropped_messages: List[Tuple[Message, str]] = []
        self.unknown_drops: Counter = Counter()

        self.metrics: Dict[str, Any] = {}

        self.hooks: Dict[str, List[Callable[..., Any]]] = {
            "packet_sent": [],  # a message leaves its source
            "packet_delivered": [],  # a message reaches its destination
            "packet_dropped": [],  # a message is dropped
            "sim_end": [],  # the simulation ends
        }

    def add_node(self, address: int, client: Optional[RecordingClient] = None) -> Node:
        """Add a node to the network.

        Args:
            address: Unique address of the node.
            client: Consumer of delivered payloads. Defaults to a client that
                reports tracked messages back to the simulator.

        Returns:
            The created Node object.
        """
        if address in self.nodes:
            raise ValueError(f"Node {address} already exists")

        if client is None:
            client = RecordingClient(
                lambda payload: self.message_delivered(address, payload)
            )

        def create_router(node: Node):
            return router_factory(self.router_type, node, seed=self.seed)

        node = Node(
            self.env,
            address,
            create_router,
            client=client,
            poll_interval=self.poll_interval,
            debug=self.debug,
            hook=self.on_node_event,
        )
        self.nodes[address] = node
        self.graph.add_node(address)
        return node

    def add_link(
        self, source: int, destination: int, capacity: float, propagation_delay: float
    ) -> Tuple[Link, Link]:
        """Add a BIDIRECTIONAL link between nodes.

        Args:
            source: Source node address.
            destination: Destination node address.
            capacity: Link capacity in bits per second.
            propagation_delay: Propagation delay in seconds.

        Returns:
            Tuple of created Link objects.
        """
        if source not in self.nodes or destination not in self.nodes:
            raise ValueError(f"Nodes {source} and/or {destination} do not exist")

        link_to = Link(
            self.env, source, destination, capacity, propagation_delay, self.chunk_size
        )
        link_from = Link(
            self.env, destination, source, capacity, propagation_delay, self.chunk_size
        )
        link_to.connect(self.nodes[destination].receive_bytes)
        link_from.connect(self.nodes[source].receive_bytes)
        self.links[(source, destination)] = link_to
        self.links[(destination, source)] = link_from
        self.nodes[source].add_link(link_to)
        self.nodes[destination].add_link(link_from)
        self.graph.add_edge(
            source, destination, capacity=capacity, delay=propagation_delay
        )
        self.graph.add_edge(
            destination, source, capacity=capacity, delay=propagation_delay
        )
        return link_to, link_from

    def compute_shortest_paths(self) -> None:
        """Compute shortest paths and set routing tables for all nodes."""
        shortest_paths = nx.all_pairs_dijkstra_path(self.graph, weight="delay")

        for source, paths in shortest_paths:
            routing_table = {}
            for destination, path in paths.items():
                if source != destination and len(path) > 1:
                    routing_table[destination] = path[1]
            self.nodes[source].set_routing_table(routing_table)

    def send_message(self, source: int, destination: int, size: int) -> Message:
        """Send a tracked message.

        The payload starts with the message id and is padded with random bytes
        up to `size`, which is clamped to what one packet can carry.

        Args:
            source: Source node address.
            destination: Destination node address.
            size: Requested payload size in bytes.

        Returns:
            The created Message object.

        Raises:
            ValueError: If the message is addressed to its own source.
        """
        if source == destination:
            raise ValueError(f"Message source and destination are both {source}")
        size = max(MESSAGE_ID_SIZE, min(size, MAX_PAYLOAD_SIZE))
        message = Message(source, destination, size, self.env.now)
        self.messages[message.id] = message
        payload = message.id_bytes() + self.rng.bytes(size - MESSAGE_ID_SIZE)

        try:
            self.nodes[source].send(destination, payload)
        except RoutingLayerError as error:
            self.message_dropped(message, drop_reason(error), self.nodes[source])
            return message

        self.call_hooks("packet_sent", message, self.nodes[source], self.env.now)
        return message

    def packet_generator(
        self,
        source: int,
        destination: int,
        payload_size: Callable[[], int],
        interval: Callable[[], float],
    ) -> simpy.events.Process:
        """Generate messages according to specified pattern.

        Args:
            source: Source node address.
            destination: Destination node address.
            payload_size: Function returning the size of each payload in bytes.
            interval: Function returning the time until the next message.

        Returns:
            SimPy process for the message generator.
        """
        if source not in self.nodes or destination not in self.nodes:
            raise ValueError(f"Nodes {source} and/or {destination} do not exist")
        if source == destination:
            raise ValueError(f"Generator source and destination are both {source}")
        self.generators.append((source, destination))

        def generator_process():
            while True:
                yield self.env.timeout(interval())
                self.send_message(source, destination, payload_size())

        return self.env.process(generator_process())

    def message_delivered(self, address: int, payload: bytes) -> None:
        """Handle a payload delivered to the client of a node.

        Args:
            address: Address of the node whose client received the payload.
            payload: The delivered payload.
        """
        message = self.messages.get(Message.id_from_payload(payload))
        if message is None or message.destination != address or message.delivered:
            return
        message.arrival_time = self.env.now
        self.completed_messages.append(message)
        self.call_hooks("packet_delivered", message, self.nodes[address], self.env.now)

    def message_dropped(self, message: Message, reason: str, node: Node) -> None:
        """Handle message drop.

        Args:
            message: The message that was dropped.
            reason: Reason for dropping the message.
            node: The node where the message was dropped.
        """
        message.dropped = True
        message.drop_reason = reason
        self.dropped_messages.append((message, reason))
        self.call_hooks("packet_dropped", message, node, reason, self.env.now)

    def on_node_event(self, event_type: str, *args: Any) -> None:
        """Receive events reported by the nodes.

        Args:
            event_type: The type of event that occurred.
            *args: Arguments of the event.
        """
        if event_type != "packet_dropped":
            return
        packet, node, reason, _ = args
        _, _, payload = decode_packet(packet)
        message = self.messages.get(Message.id_from_payload(payload))
        if message is None:
            self.unknown_drops[reason] += 1
            return
        self.message_dropped(message, reason, node)

    def calculate_metrics(
        self, start_time: float = 0, end_time: Optional[float] = None
    ) -> Dict[str, Any]:
        """Calculate performance metrics.

        Args:
            start_time: Start time for metric calculation.
            end_time: End time for metric calculation (defaults to current time).

        Returns:
            Dictionary of calculated metrics.
        """
        if end_time is None:
            end_time = self.env.now

        simulation_time = end_time - start_time

        delivered = [
            m for m in self.completed_messages if start_time <= m.arrival_time <= end_time
        ]
        delays = np.array([m.get_total_delay() for m in delivered])
        messages_sent = len(self.messages)
        messages_dropped = len(self.dropped_messages)

        transmissions = sum(link.packets_sent for link in self.links.values())
        originated = sum(node.packets_sent for node in self.nodes.values())

        link_utilization: Dict[Tuple[int, int], float] = {}
        for (source, destination), link in self.links.items():
            bits_sent = link.bytes_sent * 8
            max_bits = link.capacity * simulation_time
            if simulation_time <= 0:
                utilization = 0.0
            elif max_bits == float("inf"):
                utilization = bits_sent
            else:
                utilization = bits_sent / max_bits if max_bits != 0 else 0
            link_utilization[(source, destination)] = utilization

        packet_drops: Counter = Counter(self.unknown_drops)
        for _, reason in self.dropped_messages:
            packet_drops[reason] += 1

        self.metrics = {
            "router_type": self.router_type,
            "messages_sent": messages_sent,
            "messages_delivered": len(self.completed_messages),
            "messages_dropped": messages_dropped,
            "messages_in_transit": messages_sent
            - len(self.completed_messages)
            - messages_dropped,
            "delivery_ratio": (
                len(self.completed_messages) / messages_sent if messages_sent else 0
            ),
            "throughput": (
                sum(m.size for m in delivered) / simulation_time
                if simulation_time > 0
                else 0
            ),
            "average_delay": float(delays.mean()) if delays.size else 0,
            "p95_delay": float(np.percentile(delays, 95)) if delays.size else 0,
            "transmissions": transmissions,
            "forwards": transmissions - originated,
            "transmissions_per_delivery": (
                transmissions / len(self.completed_messages)
                if self.completed_messages
                else 0
            ),
            "link_utilization": link_utilization,
            "packet_drops": dict(packet_drops),
        }

        return self.metrics

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        """Register a callback function for a specific event type.

        Args:
            event_type: The type of event to register for.
            callback: The function to call when the event occurs.
        """
        if event_type not in self.hooks:
            raise ValueError(f"Unknown hook type: {event_type}")
        self.hooks[event_type].append(callback)

    def call_hooks(self, event_type: str, *args: Any, **kwargs: Any) -> None:
        """Call all registered callbacks for the given event type.

        Args:
            event_type: The type of event that occurred.
            *args, **kwargs: Arguments to pass to the callback functions.
        """
        for callback in self.hooks.get(event_type, []):
            callback(*args, **kwargs)

    def run(self, duration: float, updates: bool = False) -> Dict[str, Any]:
        """Run the simulation for a specified duration.

        Args:
            duration: Simulation duration in seconds.
            updates: Whether to print the progress of the simulation.

        Returns:
            Dictionary of calculated metrics.
        """
        if duration <= 0:
            raise ValueError(f"Simulation duration must be positive, got {duration}")

        if updates:
            count = 10
            interval = duration / count

            def update():
                counter = 0
                while True:
                    yield self.env.timeout(interval)
                    counter += 1
                    progress = counter / count * 100
                    print(f"Progress: {progress:.2f}%", end="\r")

            self.env.process(update())

        self.env.run(until=self.env.now + duration)

        self.calculate_metrics()

        self.call_hooks("sim_end", self.metrics)

        return self.metrics
