import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class CustomRNG:
    """
    A custom pseudo-random number generator (PRNG) class that uses a Linear Congruential Generator (LCG) algorithm.
    Each router owns one, so a seed fully determines its link choices without touching the
    process-wide `random` module.
    """

    # Linear Congruential Generator (LCG) algorithm parameters
    MULTIPLIER = 1664525
    INCREMENT = 1013904223
    MODULUS = 2**32

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize the PRNG with a seed value.

        Args:
            seed (int, optional): The initial seed value. Drawn from system entropy if None.
        """
        self.seed(seed)

    def seed(self, seed: Optional[int] = None) -> None:
        """
        Reset the generator state.

        Args:
            seed (int, optional): The new seed value. Drawn from system entropy if None.
        """
        if seed is None:
            seed = random.SystemRandom().getrandbits(32)
        self.state = seed % self.MODULUS

    def random(self) -> float:
        """
        Generate a pseudo-random float between 0 and 1 using the LCG algorithm.

        Returns:
            float: A pseudo-random number in the range [0, 1).
        """
        self.state = (self.MULTIPLIER * self.state + self.INCREMENT) % self.MODULUS
        return self.state / self.MODULUS

    def randrange(self, stop: int) -> int:
        """
        Select a pseudo-random integer in the range [0, stop).

        Raises:
            ValueError: If stop is not positive.
        """
        if stop <= 0:
            raise ValueError("Cannot select from an empty range")
        return int(self.random() * stop)

    def choice(self, items: Sequence[T]) -> T:
        """
        Select a random item from a non-empty sequence.

        Args:
            items (Sequence): The items to choose from.

        Returns:
            Any: A randomly selected item from the sequence.

        Raises:
            ValueError: If the input sequence is empty.
        """
        if not items:
            raise ValueError("Cannot choose from an empty list")
        return items[self.randrange(len(items))]
