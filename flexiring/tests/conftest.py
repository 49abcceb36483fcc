"""Shared fixtures and hash strategy doubles."""

from __future__ import annotations

import logging
from typing import Optional

import pytest

from flexiring.hashing import md5_hash
from flexiring.sharding import ConsistentHashRing


class FixedHasher:
    """Returns whatever value is currently set, for any input."""

    def __init__(self, value: int = 0) -> None:
        self.value = value
        self.calls = 0

    def __call__(self, value: str) -> int:
        self.calls += 1
        return self.value


class TableHasher:
    """Looks inputs up in a table; unknown inputs hash to default."""

    def __init__(self, table: dict[str, int], default: Optional[int] = None) -> None:
        self.table = table
        self.default = default

    def __call__(self, value: str) -> int:
        if value in self.table:
            return self.table[value]
        if self.default is None:
            raise KeyError(value)
        return self.default


@pytest.fixture
def fixed_hasher() -> FixedHasher:
    return FixedHasher()


@pytest.fixture
def ten_target_ring() -> ConsistentHashRing:
    """Default CRC32 ring with target1..target10."""
    ring = ConsistentHashRing()
    ring.add_targets([f"target{i}" for i in range(1, 11)]).unwrap()
    return ring


@pytest.fixture
def md5_ring() -> ConsistentHashRing:
    """MD5 ring with five equal targets, used for statistical checks."""
    ring = ConsistentHashRing(hasher=md5_hash, replicas=128)
    ring.add_targets(["s1", "s2", "s3", "s4", "s5"]).unwrap()
    return ring


@pytest.fixture
def restore_root_logging():
    """Drop the handler setup_logging() installs and restore the root level."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) is logging.StreamHandler:
            root.removeHandler(handler)
    root.setLevel(level)
