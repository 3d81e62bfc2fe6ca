# runtime/rng.py
from zlib import crc32

import numpy as np


def _tag(part: object) -> int:
    if isinstance(part, int):
        return part & 0xFFFFFFFF
    return crc32(str(part).encode("utf-8"))


class RNGRegistry:
    """
    Seeded numpy Generators for synthetic inventory, one per (name, *parts) key.
    Seed path: [seed, scenario, name, *parts]; asking twice for a key continues
    the same stream, so two samplers on one tag never repeat each other's nodes.
    """

    def __init__(self, seed: int, *, scenario: str | int = 0):
        self._root = [_tag(seed), _tag(scenario)]
        self._streams: dict[tuple, np.random.Generator] = {}

    def substream(self, name: str, *parts: object) -> np.random.Generator:
        key = (name, *parts)
        gen = self._streams.get(key)
        if gen is None:
            ss = np.random.SeedSequence([*self._root, *(_tag(p) for p in key)])
            gen = self._streams[key] = np.random.Generator(np.random.PCG64(ss))
        return gen
