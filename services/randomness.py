"""
Randomness sources for minting and racing.

The default source hashes public ledger state (block hash, counters,
caller, timestamp), so anyone who can read the ledger can predict the
outcome before submitting. This is intended. Tests override
get_randomness to get fixed outcomes.
"""
import hashlib


class RandomnessSource:
    """Produces one value in [0, upper) per call."""

    def next_value(self, upper: int, *seed) -> int:
        raise NotImplementedError


class HashRandomness(RandomnessSource):
    """sha3-256 over the seed parts, reduced modulo ``upper``."""

    def next_value(self, upper: int, *seed) -> int:
        if upper <= 0:
            raise ValueError(f"upper must be positive, got {upper}")
        material = "|".join(str(part) for part in seed).encode("utf-8")
        digest = hashlib.sha3_256(material).digest()
        return int.from_bytes(digest, "big") % upper


_default_source = HashRandomness()


def get_randomness() -> RandomnessSource:
    """FastAPI dependency; override it in tests."""
    return _default_source
