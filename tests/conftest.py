"""
pytest configuration and fixtures.
"""

from typing import Callable, List

import matplotlib
import pytest
import simpy

matplotlib.use("Agg")

from randnet.core.client import RecordingClient
from randnet.core.node import Node
from randnet.core.routing_algorithms import RandomRouter, Router


class FakeLink:
    """Link stand-in that records every packet handed to it."""

    def __init__(self, name: str, fail: Exception | None = None):
        self.name = name
        self.fail = fail
        self.sent: List[bytes] = []

    def send(self, data: bytes) -> None:
        if self.fail is not None:
            raise self.fail
        self.sent.append(data)

    def __repr__(self) -> str:
        return f"FakeLink({self.name})"


@pytest.fixture
def env() -> simpy.Environment:
    return simpy.Environment()


@pytest.fixture
def client() -> RecordingClient:
    return RecordingClient()


@pytest.fixture
def make_node(env: simpy.Environment, client: RecordingClient) -> Callable[..., Node]:
    """Build a node whose links are FakeLinks keyed by neighbour address."""

    def factory(
        address: int = 7,
        neighbours: List[int] = (),
        router_func: Callable[[Node], Router] = lambda node: RandomRouter(node, seed=1),
    ) -> Node:
        node = Node(env, address, router_func, client=client)
        for neighbour in neighbours:
            node.links[neighbour] = FakeLink(str(neighbour))
            node.buffers[neighbour] = bytearray()
        return node

    return factory
