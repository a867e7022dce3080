"""
tspgen/generation/random_source.py

Seedable source of random values used by every generation step.

The source wraps a numpy Generator driven by the PCG64 bit generator and a
SeedSequence. Given the same seed and the same sequence of draws it yields the
same values on any platform. Without a seed, the SeedSequence pulls fresh
entropy from the OS; that entropy is exposed so an unseeded run can be replayed
by passing it back as the seed.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from tspgen.errors import InvalidConfiguration

# Seeds are 128-bit at most; every uint64 fits.
MAX_SEED = 2 ** 128


class RandomSource:
    """
    Explicit random state threaded through centroid placement and city sampling.

    Usage:
        rng = RandomSource(seed=42)
        x = rng.uniform(0.0, 1000.0)
        dx = rng.gaussian(0.0, 10.0)
    """

    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is not None:
            if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
                raise InvalidConfiguration(f"seed must be an integer, got {seed!r}")
            seed = int(seed)
            if not (0 <= seed < MAX_SEED):
                raise InvalidConfiguration(f"seed must be in [0, 2**128), got {seed}")
        self.seed = seed
        self._seed_sequence = np.random.SeedSequence(seed)
        self._generator = np.random.Generator(np.random.PCG64(self._seed_sequence))

    @property
    def entropy(self) -> int:
        """Entropy the stream was built from; equals the seed when one was given."""
        return int(self._seed_sequence.entropy)

    @property
    def seeded(self) -> bool:
        return self.seed is not None

    def uniform(self, low: float, high: float) -> float:
        """Return a value drawn uniformly from [low, high)."""
        value = float(self._generator.uniform(low, high))
        # low + (high - low) * u may round up to high for u close to 1
        if value >= high:
            value = float(np.nextafter(high, low))
        return value

    def gaussian(self, mean: float, std_dev: float) -> float:
        """Return a value drawn from Normal(mean, std_dev)."""
        return float(self._generator.normal(loc=mean, scale=std_dev))

    def __repr__(self) -> str:
        return f"RandomSource(seed={self.seed!r})"
