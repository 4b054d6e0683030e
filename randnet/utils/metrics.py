"""Metrics utilities for network simulation.

This module provides functions for saving and comparing network simulation
metrics, including delivery ratio, delay, transmissions and link utilization.
"""

import os
import json
import csv
from typing import Dict, Any, List, Optional

from randnet.core.simulator import NetworkSimulator

COMPARED_METRICS = [
    "delivery_ratio",
    "average_delay",
    "p95_delay",
    "throughput",
    "transmissions_per_delivery",
]


def serializable_metrics(metrics: Dict[str, Any]) -> Dict[str, Any]:
    """Convert metrics into JSON serializable values.

    Args:
        metrics: Dictionary of metrics.

    Returns:
        The metrics with tuple keys turned into "src->dst" strings.
    """
    result = {}
    for key, value in metrics.items():
        if key == "link_utilization":
            result[key] = {f"{src}->{dst}": util for (src, dst), util in value.items()}
        else:
            result[key] = value
    return result


def save_metrics_to_json(
    metrics: Dict[str, Any], output_dir: str = "results", name: str = "metrics"
) -> str:
    """Save metrics to a JSON file.

    Args:
        metrics: Dictionary of metrics to save.
        output_dir: Output directory.
        name: File name without extension.

    Returns:
        The path of the written file.
    """
    os.makedirs(output_dir, exist_ok=True)
    filename = os.path.join(output_dir, f"{name}.json")

    with open(filename, "w") as f:
        json.dump(serializable_metrics(metrics), f, indent=2)

    return filename


def save_metrics_to_csv(
    metrics_list: List[Dict[str, Any]],
    filename: str = "results/metrics_comparison.csv",
) -> None:
    """Save comparison of metrics from different routers to a CSV file.

    Args:
        metrics_list: List of metrics dictionaries from different simulations.
        filename: Output filename.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(filename, "w", newline="") as f:
        writer = csv.writer(f)

        writer.writerow(["Router"] + COMPARED_METRICS)

        for metrics in metrics_list:
            writer.writerow(
                [metrics["router_type"]] + [metrics[key] for key in COMPARED_METRICS]
            )


def compare_routers(
    simulators: List[NetworkSimulator], output_dir: Optional[str] = "results"
) -> Dict[str, List[Any]]:
    """Compare metrics from different routers.

    Args:
        simulators: List of NetworkSimulator instances with different routers.
        output_dir: Directory to save output files, or None to skip saving.

    Returns:
        Dictionary of metric comparisons.
    """
    metrics_list = [sim.metrics for sim in simulators]

    if output_dir is not None:
        save_metrics_to_csv(metrics_list, os.path.join(output_dir, "metrics_comparison.csv"))

    comparison: Dict[str, List[Any]] = {
        "router_types": [m["router_type"] for m in metrics_list]
    }
    for key in COMPARED_METRICS:
        comparison[key] = [m[key] for m in metrics_list]

    return comparison


def calculate_fairness_index(
    simulator: NetworkSimulator, flow_throughputs: Optional[Dict[str, float]] = None
) -> float:
    """Calculate Jain's fairness index for flow throughputs.

    Args:
        simulator: NetworkSimulator instance.
        flow_throughputs: Dictionary mapping flow IDs to throughputs.
            If None, calculates from completed messages.

    Returns:
        Fairness index between 0 and 1 (1 is perfectly fair).
    """
    if flow_throughputs is None:
        flow_bytes: Dict[str, int] = {}
        flow_start_times: Dict[str, float] = {}
        flow_end_times: Dict[str, float] = {}

        for message in simulator.completed_messages:
            flow_id = message.flow_id

            if flow_id not in flow_bytes:
                flow_bytes[flow_id] = message.size
                flow_start_times[flow_id] = message.creation_time
                flow_end_times[flow_id] = message.arrival_time
            else:
                flow_bytes[flow_id] += message.size
                flow_start_times[flow_id] = min(
                    flow_start_times[flow_id], message.creation_time
                )
                flow_end_times[flow_id] = max(
                    flow_end_times[flow_id], message.arrival_time
                )

        flow_throughputs = {}
        for flow_id, bytes_sent in flow_bytes.items():
            duration = flow_end_times[flow_id] - flow_start_times[flow_id]
            if duration > 0:
                flow_throughputs[flow_id] = bytes_sent / duration

    throughputs = list(flow_throughputs.values())
    n = len(throughputs)

    if n == 0:
        return 0.0

    sum_throughput = sum(throughputs)
    sum_squared = sum(x**2 for x in throughputs)

    if sum_squared == 0:
        return 0.0

    return (sum_throughput**2) / (n * sum_squared)
