#!/usr/bin/env python3
"""Example network simulation using the randnet package.

This script builds a random topology and compares random routing with
shortest path routing over the same traffic.
"""

import argparse
import os
import random
from pprint import pprint
from typing import Callable, List, Tuple

import numpy as np
import simpy

from randnet.core.simulator import NetworkSimulator
from randnet.traffic.generators import bursty_traffic, poisson_traffic, uniform_size
from randnet.utils.metrics import (
    calculate_fairness_index,
    compare_routers,
    save_metrics_to_json,
)
from randnet.utils.visualization import (
    plot_link_utilizations,
    plot_metrics,
    save_network_visualization,
)


def generate_random_graph(
    n: int, excess_edges: int, rand: random.Random
) -> List[Tuple[int, int]]:
    """Generate a random connected graph: a spanning path plus excess edges."""
    edges: List[Tuple[int, int]] = []
    nodes: List[int] = list(range(1, n + 1))
    rand.shuffle(nodes)

    for i in range(n - 1):
        edges.append((nodes[i], nodes[i + 1]))

    possible_edges: List[Tuple[int, int]] = [
        (i, j)
        for i in nodes
        for j in nodes
        if i < j and (i, j) not in edges and (j, i) not in edges
    ]
    rand.shuffle(possible_edges)
    edges.extend(possible_edges[:excess_edges])

    return edges


def simulator_creator(
    num_nodes: int,
    excess_edges: int,
    num_generators: int,
    seed: int = 42,
    chunk_size: int | None = None,
    debug: bool = False,
    log: bool = False,
) -> Callable[[str], NetworkSimulator]:
    """Create a network simulator factory with specified parameters.

    The topology, link delays and traffic pairs are drawn once, so every
    simulator created by the returned function runs on the same network.

    Args:
        num_nodes: Number of nodes in the network.
        excess_edges: Number of additional edges beyond a spanning path.
        num_generators: Number of traffic generators.
        seed: Random seed for reproducibility.
        chunk_size: Maximum bytes per link delivery (default: whole packets).
        debug: Whether nodes print a trace of the packets they handle.
        log: Whether to print the traffic pairs.

    Returns:
        A function that instantiates a NetworkSimulator for a given router type.
    """
    rand = random.Random(seed)

    edges = generate_random_graph(num_nodes, excess_edges, rand)
    link_delays: List[float] = [rand.uniform(0.001, 0.05) for _ in range(len(edges))]

    # Only non-neighbours, so every message needs at least one forward.
    possible_node_pairs: List[Tuple[int, int]] = [
        (i, j)
        for i in range(1, num_nodes + 1)
        for j in range(1, num_nodes + 1)
        if i != j and (i, j) not in edges and (j, i) not in edges
    ]
    if len(possible_node_pairs) < num_generators:
        raise ValueError(
            f"Cannot generate {num_generators} node pairs. Max is {len(possible_node_pairs)}"
        )
    node_pairs = rand.sample(possible_node_pairs, num_generators)

    if log:
        print("Generators:")
        print(node_pairs)

    def instantiate_simulator(router_type: str) -> NetworkSimulator:
        env = simpy.Environment()
        simulator = NetworkSimulator(
            env, router_type, seed=seed, chunk_size=chunk_size, debug=debug
        )

        for node in range(1, num_nodes + 1):
            simulator.add_node(node)

        for (source, destination), delay in zip(edges, link_delays):
            simulator.add_link(source, destination, 1e5, delay)

        simulator.compute_shortest_paths()

        traffic_rng = np.random.default_rng(seed)
        for source, destination in node_pairs:
            simulator.packet_generator(
                source,
                destination,
                payload_size=uniform_size(16, 255, traffic_rng),
                interval=bursty_traffic(5, poisson_traffic(50, traffic_rng)),
            )

        return simulator

    return instantiate_simulator


def main() -> None:
    """Run simulations with different routers and compare results."""
    parser = argparse.ArgumentParser(
        description="Compare random routing with shortest path routing."
    )
    parser.add_argument("--nodes", type=int, default=8, help="Number of nodes")
    parser.add_argument(
        "--excess-edges", type=int, default=6, help="Edges beyond a spanning path"
    )
    parser.add_argument(
        "--generators", type=int, default=4, help="Number of traffic generators"
    )
    parser.add_argument(
        "--duration", type=float, default=10.0, help="Simulated seconds per run"
    )
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=None,
        help="Deliver link data in pieces of at most this many bytes",
    )
    parser.add_argument(
        "--routers",
        nargs="+",
        default=["Random", "Dijkstra"],
        help="Routing strategies to compare",
    )
    parser.add_argument("--output-dir", default="results", help="Output directory")
    parser.add_argument("--plot", action="store_true", help="Save plots")
    parser.add_argument("--debug", action="store_true", help="Trace every packet")
    args = parser.parse_args()
    if args.duration <= 0:
        parser.error("--duration must be positive")

    simulator_func = simulator_creator(
        args.nodes,
        args.excess_edges,
        args.generators,
        seed=args.seed,
        chunk_size=args.chunk_size,
        debug=args.debug,
        log=True,
    )

    simulators: List[NetworkSimulator] = []
    for router in args.routers:
        print(f"Running simulation with {router} router...")
        simulator = simulator_func(router)
        simulator.run(args.duration, updates=not args.debug)
        simulators.append(simulator)

        save_metrics_to_json(simulator.metrics, args.output_dir, f"{router.lower()}_metrics")

        metrics = simulator.metrics
        print(f"  Delivery ratio:      {metrics['delivery_ratio'] * 100:.2f}%")
        print(f"  Average Delay:       {metrics['average_delay']:.3f} s")
        print(f"  95th pct Delay:      {metrics['p95_delay']:.3f} s")
        print(f"  Transmissions/msg:   {metrics['transmissions_per_delivery']:.2f}")
        print(f"  Fairness index:      {calculate_fairness_index(simulator):.4f}")
        if metrics["packet_drops"]:
            pprint(metrics["packet_drops"])

    compare_routers(simulators, args.output_dir)

    if args.plot:
        save_network_visualization(
            simulators[0], os.path.join(args.output_dir, "topology.png")
        )
        metrics_list = [simulator.metrics for simulator in simulators]
        plot_link_utilizations(metrics_list, args.output_dir)
        plot_metrics(metrics_list, args.output_dir)

    print(f"\nSimulation complete. Results saved to '{args.output_dir}' directory.")


if __name__ == "__main__":
    main()
