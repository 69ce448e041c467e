"""Seeded pseudo-random generator used for reproducible question ordering."""

MASK32 = 0xFFFFFFFF


def hash_string32(text: str) -> int:
    """32-bit FNV-1a hash over the UTF-16 code units of ``text``."""
    h = 2166136261
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        h ^= data[i] | (data[i + 1] << 8)
        h = (h * 16777619) & MASK32
    return h


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


class SeededRng:
    """mulberry32 generator: xorshift mixing over a Weyl sequence.

    Any object with ``random() -> float`` in [0, 1) can stand in for this one
    wherever a ``SeededRng`` is accepted.
    """

    def __init__(self, seed: int):
        self._state = seed & MASK32

    @classmethod
    def from_key(cls, key: str) -> "SeededRng":
        return cls(hash_string32(key))

    def random(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & MASK32
        t = self._state
        r = _imul(t ^ (t >> 15), 1 | t)
        r = (r ^ ((r + _imul(r ^ (r >> 7), 61 | r)) & MASK32)) & MASK32
        return ((r ^ (r >> 14)) & MASK32) / 4294967296

    def shuffle(self, items: list) -> list:
        """Fisher-Yates shuffle into a new list."""
        out = list(items)
        for i in range(len(out) - 1, 0, -1):
            j = int(self.random() * (i + 1))
            out[i], out[j] = out[j], out[i]
        return out


def seeded_shuffle(items: list, seed_key: str, rng_factory=SeededRng.from_key) -> list:
    return rng_factory(seed_key).shuffle(items)
