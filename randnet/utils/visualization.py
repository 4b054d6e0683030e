"""Visualization utilities for network simulation.

This module provides functions for visualizing network simulation results,
including network topology and performance metrics of routing strategies.
"""

from typing import Dict, Any, List, Tuple
import matplotlib.pyplot as plt
import networkx as nx
import numpy as np
import os

from randnet.core.simulator import NetworkSimulator


def save_network_visualization(
    simulator: NetworkSimulator,
    filename: str | None = None,
    figsize: Tuple[int, int] = (10, 8),
    block=True,
) -> None:
    """Save network topology visualization to a file.

    Args:
        simulator: NetworkSimulator instance.
        filename: Output filename, or None to show it immediately.
        figsize: Figure size as (width, height) in inches.
        block: Whether showing the figure blocks until it is closed.
    """
    fig = plt.figure(figsize=figsize)

    graph = simulator.graph.to_undirected()
    pos = nx.spring_layout(graph, seed=simulator.seed)

    nx.draw_networkx_nodes(graph, pos, node_size=500, node_color="lightblue")
    nx.draw_networkx_edges(graph, pos, edge_color="gray")

    for source, destination in simulator.generators:
        nx.draw_networkx_edges(
            nx.DiGraph([(source, destination)]),
            pos,
            width=2,
            alpha=0.4,
            edge_color="blue",
            style="dashed",
            connectionstyle="arc3,rad=0.2",
            arrows=True,
            arrowsize=30,
        )

    nx.draw_networkx_labels(graph, pos, font_size=16)

    edge_labels = {
        (u, v): f"{graph[u][v]['delay']*1000:.1f}ms" for u, v in graph.edges()
    }
    nx.draw_networkx_edge_labels(
        graph,
        pos,
        edge_labels=edge_labels,
        font_size=12,
        rotate=False,
        bbox=dict(facecolor="white", edgecolor="none", alpha=0.7),
    )

    plt.axis("off")
    plt.tight_layout()

    if filename:
        directory = os.path.dirname(filename)
        if directory:
            os.makedirs(directory, exist_ok=True)
        fig.savefig(filename)
        plt.close(fig)
    else:
        plt.show(block=block)
        if not block:
            plt.pause(0.001)


def plot_metrics(
    metrics_list: List[Dict[str, Any]],
    output_dir: str | None = None,
    show=True,
) -> None:
    """Plot and save performance metrics for different routers.

    Args:
        metrics_list: List of metrics dictionaries from different simulations.
        output_dir: Directory to save output plots.
        show: Whether to show the plot when it is not saved.
    """
    router_types = [metrics["router_type"] for metrics in metrics_list]

    fig, axes = plt.subplots(1, 3, figsize=(12, 5))

    panels = [
        ("delivery_ratio", "Delivery Ratio", "tab:blue"),
        ("average_delay", "Average Delay (seconds)", "orange"),
        ("transmissions_per_delivery", "Transmissions per Delivery", "green"),
    ]

    x = np.arange(len(router_types))

    for ax, (key, label, color) in zip(axes, panels):
        ax.bar(x, [m[key] for m in metrics_list], width=0.4, color=color)
        ax.set_ylabel(label)
        ax.set_title(f"{label} Comparison")
        ax.set_xlabel("Router Type")
        ax.set_xticks(x)
        ax.set_xticklabels(router_types)
    axes[0].set_ylim(0, 1)

    plt.tight_layout()

    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        plt.savefig(os.path.join(output_dir, "metrics_comparison.png"))
        plt.close(fig)
    elif show:
        plt.show()


def plot_link_utilizations(
    metrics_list: List[Dict[str, Any]],
    output_dir: str | None = None,
    filename: str = "link_utilizations",
    show=True,
) -> None:
    """Plot and save link utilization.

    Args:
        metrics_list: List of metrics dictionaries from different simulations.
        output_dir: Directory to save output plots.
        filename: The filename for the file, without extension.
        show: Whether to show the plot when it is not saved.
    """
    num_metrics = len(metrics_list)
    fig, axes = plt.subplots(
        num_metrics, 1, figsize=(12, 5 * num_metrics), sharex=True, squeeze=False
    )

    for i, metrics in enumerate(metrics_list):
        link_utilization = metrics["link_utilization"]
        ax = axes[i][0]
        if not link_utilization:
            continue

        links = [f"{src}->{dst}" for (src, dst) in link_utilization.keys()]
        ax.bar(links, list(link_utilization.values()))
        ax.set_title(f"Link Utilization (Router: {metrics['router_type']})")
        ax.set_ylabel("Utilization")
        if i == num_metrics - 1:
            ax.set_xlabel("Link")
            ax.set_xticks(range(len(links)))
            ax.set_xticklabels(links, rotation=45)

    plt.tight_layout(rect=[0, 0.02, 1, 0.98], h_pad=3)

    if output_dir:
        os.makedirs(output_dir, exist_ok=True)
        plt.savefig(os.path.join(output_dir, f"{filename}.png"))
        plt.close(fig)
    elif show:
        plt.show()
