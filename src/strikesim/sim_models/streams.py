"""Position-keyed random streams for one chunk of paths.

A chunk's draws come from many child generators, one per (step, call) pair,
all derived from the chunk seed through ``np.random.SeedSequence``. Every
integrator call takes exactly one value per path from its generator, so a
path's numbers depend only on its position in the chunk. The chunk can then be
simulated whole or in consecutive windows with identical results.
"""

import numpy as np


class PathStream:
    """Generator-like random source for consecutive windows of one chunk.

    Windows must be simulated in path order; each window starts with
    ``begin`` and calls ``next_step`` before every time step.
    """

    def __init__(self, seed: int):
        self.seed = int(seed)
        self._generators: dict[tuple[int, int], np.random.Generator] = {}
        self._step = 0
        self._call = 0

    def begin(self) -> None:
        self._step = 0
        self._call = 0

    def next_step(self) -> None:
        self._step += 1
        self._call = 0

    def _next_generator(self) -> np.random.Generator:
        key = (self._step, self._call)
        self._call += 1
        gen = self._generators.get(key)
        if gen is None:
            seq = np.random.SeedSequence(self.seed, spawn_key=key)
            gen = self._generators[key] = np.random.Generator(np.random.PCG64(seq))
        return gen

    def random(self, size=None):
        return self._next_generator().random(size)

    def standard_normal(self, size=None):
        return self._next_generator().standard_normal(size)

    def poisson(self, lam=1.0, size=None):
        return self._next_generator().poisson(lam, size)
