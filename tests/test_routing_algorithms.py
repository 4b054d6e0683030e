"""
Unit tests for link selection and packet processing.
"""

import random
from collections import Counter

import pytest

from conftest import FakeLink
from randnet.core.errors import LinkDownError, MalformedPacketError, NoRouteError
from randnet.core.packet import encode_packet
from randnet.core.routing_algorithms import (
    DijkstraRouter,
    RandomRouter,
    router_factory,
    select_link,
)
from randnet.utils.rng import CustomRNG


class ExplodingRNG:
    """Random source that must not be consulted."""

    def choice(self, items):
        raise AssertionError("random source consulted")


class TestSelectLink:
    """Tests for select_link."""

    def test_direct_neighbour_never_consults_rng(self):
        links = {1: "a", 42: "b", 3: "c"}
        assert select_link(42, links, ExplodingRNG()) == "b"

    @pytest.mark.parametrize("seed", range(20))
    def test_direct_neighbour_for_every_seed(self, seed):
        links = {1: "a", 42: "b", 3: "c"}
        assert select_link(42, links, random.Random(seed)) == "b"
        assert select_link(42, links, CustomRNG(seed)) == "b"

    def test_empty_links(self):
        with pytest.raises(NoRouteError):
            select_link(42, {}, random.Random(0))

    def test_empty_links_is_lookup_error(self):
        with pytest.raises(LookupError):
            select_link(0, {}, CustomRNG(0))

    def test_single_link(self):
        assert select_link(99, {1: "only"}, random.Random(3)) == "only"

    def test_links_not_modified(self):
        links = {1: "a", 2: "b"}
        select_link(99, links, random.Random(0))
        assert links == {1: "a", 2: "b"}

    def test_seeded_selection_is_reproducible(self):
        links = {n: f"link{n}" for n in range(10)}
        first_rng, second_rng = CustomRNG(5), CustomRNG(5)
        first = [select_link(99, links, first_rng) for _ in range(50)]
        second = [select_link(99, links, second_rng) for _ in range(50)]
        assert first == second
        assert len(set(first)) > 1

    @pytest.mark.parametrize("rng", [random.Random(1234), CustomRNG(1234)])
    def test_uniformity(self, rng):
        links = {n: f"link{n}" for n in (10, 20, 30, 40)}
        trials = 40000
        counts = Counter(select_link(99, links, rng) for _ in range(trials))
        assert set(counts) == set(links.values())
        for link in links.values():
            assert counts[link] / trials == pytest.approx(1 / len(links), abs=0.02)


class TestRandomRouter:
    """Tests for RandomRouter used as a node's routing strategy."""

    def test_create_packet_uses_node_address(self, make_node):
        node = make_node(address=7)
        assert node.router.create_packet(42, b"hi") == encode_packet(42, 7, b"hi")

    def test_deliver_local_payload(self, make_node, client):
        node = make_node(address=7, neighbours=[42, 5])
        node.router.process_packet(encode_packet(7, 3, bytes([0xAA, 0xBB])))
        assert client.received == [bytes([0xAA, 0xBB])]
        assert all(link.sent == [] for link in node.links.values())

    @pytest.mark.parametrize("seed", range(10))
    def test_forward_to_direct_neighbour(self, make_node, client, seed):
        node = make_node(
            address=7,
            neighbours=[42],
            router_func=lambda node: RandomRouter(node, seed=seed),
        )
        packet = encode_packet(42, 3, b"data")
        node.router.process_packet(packet)
        assert node.links[42].sent == [packet]
        assert client.received == []

    def test_forward_preserves_packet(self, make_node):
        node = make_node(address=7, neighbours=[1, 2, 3])
        packet = encode_packet(99, 3, b"unchanged")
        node.router.process_packet(packet)
        sent = [p for link in node.links.values() for p in link.sent]
        assert sent == [packet]

    def test_forward_without_links(self, make_node):
        node = make_node(address=7)
        with pytest.raises(NoRouteError):
            node.router.process_packet(encode_packet(99, 3, b"x"))

    def test_link_failure_propagates(self, make_node):
        node = make_node(address=7)
        node.links[42] = FakeLink("42", fail=LinkDownError("down"))
        with pytest.raises(LinkDownError):
            node.router.process_packet(encode_packet(42, 3, b"x"))

    def test_malformed_packet(self, make_node):
        node = make_node(address=7, neighbours=[1])
        with pytest.raises(MalformedPacketError):
            node.router.process_packet(b"\x00\x00")

    def test_injected_rng(self, make_node):
        node = make_node(
            address=7,
            neighbours=[1, 2],
            router_func=lambda node: RandomRouter(node, rng=ExplodingRNG()),
        )
        assert node.router.route(2) is node.links[2]
        with pytest.raises(AssertionError):
            node.router.route(99)

    def test_extract_packets_in_order(self, make_node):
        node = make_node()
        packets = [encode_packet(1, 2, b"a"), encode_packet(3, 4, b"bb")]
        buffer = bytearray(b"".join(packets) + packets[0][:3])
        assert list(node.router.extract_packets(buffer)) == packets
        assert buffer == packets[0][:3]
        assert list(node.router.extract_packets(buffer)) == []

    def test_extract_packets_consumes_lazily(self, make_node):
        node = make_node()
        first = encode_packet(1, 2, b"first")
        second = encode_packet(1, 2, b"second")
        buffer = bytearray(first + second)
        packets = node.router.extract_packets(buffer)
        assert next(packets) == first
        assert buffer == second


class TestDijkstraRouter:
    """Tests for DijkstraRouter."""

    def test_direct_neighbour(self, make_node):
        node = make_node(neighbours=[1, 2], router_func=DijkstraRouter)
        assert node.router.route(2) is node.links[2]

    def test_next_hop_from_routing_table(self, make_node):
        node = make_node(neighbours=[1, 2], router_func=DijkstraRouter)
        node.set_routing_table({99: 2})
        assert node.router.route(99) is node.links[2]

    def test_no_route(self, make_node):
        node = make_node(neighbours=[1, 2], router_func=DijkstraRouter)
        node.set_routing_table({50: 3})
        with pytest.raises(NoRouteError):
            node.router.route(99)
        with pytest.raises(NoRouteError):
            node.router.route(50)


class TestRouterFactory:
    """Tests for router_factory."""

    def test_known_types(self, make_node):
        node = make_node()
        assert isinstance(router_factory("Random", node), RandomRouter)
        assert isinstance(router_factory("Dijkstra", node), DijkstraRouter)

    def test_unknown_type(self, make_node):
        with pytest.raises(ValueError):
            router_factory("QL", make_node())

    def test_random_seed_depends_on_address(self, make_node):
        first = router_factory("Random", make_node(address=1), seed=42)
        second = router_factory("Random", make_node(address=2), seed=42)
        assert first.rng.state != second.rng.state

    def test_unseeded_routers_differ(self, make_node):
        first = router_factory("Random", make_node(address=1), seed=None)
        second = router_factory("Random", make_node(address=2), seed=None)
        assert first.rng.state != second.rng.state

    def test_repr(self, make_node):
        assert repr(router_factory("Dijkstra", make_node())) == "Dijkstra"
