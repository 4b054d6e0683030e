"""Traffic generators for network simulation.

This module provides functions for generating message intervals and payload
sizes. Every random generator draws from a `numpy.random.Generator` handed in
by the caller, so a simulation seed fully determines its traffic.
"""

import numpy as np
from typing import Callable, Union

from randnet.core.packet import MAX_PAYLOAD_SIZE


def constant_traffic(rate: float) -> Callable[[], float]:
    """Generate constant rate traffic.

    Args:
        rate: Rate of message generation in messages per second.

    Returns:
        Function that returns constant interval between messages.
    """
    return lambda: 1 / rate


def poisson_traffic(rate: float, rng: np.random.Generator) -> Callable[[], float]:
    """Generate Poisson traffic.

    Args:
        rate: Average rate of message generation in messages per second.
        rng: Random generator to draw intervals from.

    Returns:
        Function that returns exponentially distributed interval between messages.
    """
    return lambda: float(rng.exponential(1 / rate))


def bursty_traffic(
    burst_size: int, interval: Union[float, Callable[[], float]]
) -> Callable[[], float]:
    """Generate bursty traffic.

    Each burst contains `burst_size` messages sent at `interval`, followed by
    a gap of `interval * burst_size` before the next burst starts.

    Args:
        burst_size: Number of messages to send in each burst.
        interval: Time between messages within a burst, either fixed or a callable.

    Returns:
        Function that returns the time until the next message should be sent.
    """
    get_interval = interval if callable(interval) else lambda: interval

    in_burst = False
    messages = 0

    def next_message_delay() -> float:
        nonlocal in_burst, messages
        current = get_interval()

        if not in_burst:
            in_burst = True
            messages = 1
            return 0

        if messages < burst_size:
            messages += 1
            return current

        in_burst = False
        messages = 0
        return current * burst_size

    return next_message_delay


def constant_size(size: int) -> Callable[[], int]:
    """Generate constant size payloads.

    Args:
        size: Payload size in bytes.

    Returns:
        Function that returns constant payload size.
    """
    if not 0 <= size <= MAX_PAYLOAD_SIZE:
        raise ValueError(f"Payload size must be between 0 and {MAX_PAYLOAD_SIZE}")
    return lambda: size


def uniform_size(
    min_size: int, max_size: int, rng: np.random.Generator
) -> Callable[[], int]:
    """Generate payload sizes uniformly between two bounds (inclusive).

    Args:
        min_size: Minimum payload size in bytes.
        max_size: Maximum payload size in bytes.
        rng: Random generator to draw sizes from.

    Returns:
        Function that returns random payload size between min_size and max_size.
    """
    if not 0 <= min_size <= max_size <= MAX_PAYLOAD_SIZE:
        raise ValueError(
            f"Payload sizes must satisfy 0 <= min_size <= max_size <= {MAX_PAYLOAD_SIZE}"
        )
    return lambda: int(rng.integers(min_size, max_size + 1))
