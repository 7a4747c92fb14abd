"""Ring configuration from environment variables or a YAML file."""
from __future__ import annotations

from dataclasses import dataclass, fields
import logging
import os

import yaml

from consistent_hash_ring import HASHERS, COLLISION_POLICIES

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class RingConfig:
    """Settings for building a ConsistentHashRing"""

    replicas: int = 3
    hash_name: str = "xxh32"
    seed: int = 0
    collision_policy: str = "overwrite"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "RingConfig":
        """Load configuration from environment variables"""
        return cls(
            replicas=int(os.getenv("RING_REPLICAS", "3")),
            hash_name=os.getenv("RING_HASH", "xxh32"),
            seed=int(os.getenv("RING_SEED", "0")),
            collision_policy=os.getenv("RING_COLLISION_POLICY", "overwrite"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @classmethod
    def from_file(cls, filepath: str) -> "RingConfig":
        """Load configuration from YAML file"""
        with open(filepath, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file must hold a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {', '.join(sorted(unknown))}")
        return cls(**data)

    @property
    def level(self) -> int:
        if not isinstance(self.log_level, str) or self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {self.log_level}")
        return getattr(logging, self.log_level.upper())

    def validate(self) -> None:
        """Validate configuration parameters"""
        for name in ("replicas", "seed"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")

        if self.replicas < 1:
            raise ValueError(f"Invalid replica count: {self.replicas}")

        for name in ("hash_name", "collision_policy"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ValueError(f"{name} must be a string, got {value!r}")

        if self.hash_name not in HASHERS:
            raise ValueError(f"Invalid hash function: {self.hash_name}")

        if self.hash_name == "sha1" and self.seed != 0:
            raise ValueError("sha1 hashing does not take a seed")

        if self.collision_policy not in COLLISION_POLICIES:
            raise ValueError(
                f"Invalid collision policy: {self.collision_policy}"
            )

        _ = self.level
