"""Consistent hashing ring over a 32-bit position space.
- Sorted position array for O(log N) lookups via bisect
- Fixed number of virtual nodes per real node
- Pluggable position hash (xxh32 by default, sha1 for reference placement)
"""
from __future__ import annotations

from typing import Callable, List, Tuple, Optional, Dict, Iterable
from functools import partial
import bisect
import hashlib
import logging
import threading

try:
    import xxhash
except ImportError as e:
    raise RuntimeError("xxhash is required. Install with: pip install xxhash") from e

log = logging.getLogger(__name__)

MASK32 = 0xFFFFFFFF
COLLISION_POLICIES = ("overwrite", "probe")


def sha1_32(data: bytes, seed: int = 0) -> int:
    # seed unused
    return int.from_bytes(hashlib.sha1(data).digest()[:4], "big")

def xxh32(data: bytes, seed: int = 0) -> int:
    return xxhash.xxh32_intdigest(data, seed=seed)

HASHERS: Dict[str, Callable[..., int]] = {
    "sha1": sha1_32,
    "xxh32": xxh32,
}

def key_hash(key: str, hash_name: str = "xxh32", seed: int = 0) -> int:
    return HASHERS[hash_name](key.encode("utf-8", "surrogatepass"), seed=seed)


class ConsistentHashRing:
    """Consistent hashing ring with a fixed replica count per node.

    Each real node owns ``replicas`` positions, derived from the hash of the
    node id concatenated with the replica index. A key belongs to the owner
    of the first position at or after its own hash, wrapping to the lowest
    position past the end of the ring.

    Position collisions follow ``collision_policy``: ``"overwrite"`` keeps the
    duplicate position and hands it to the latest writer, ``"probe"`` moves
    the new position forward to the next free slot.
    """

    def __init__(
        self,
        replicas: int = 3,
        hash_name: str = "xxh32",
        seed: int = 0,
        collision_policy: str = "overwrite",
        hash_fn: Optional[Callable[[bytes], int]] = None,
    ):
        if replicas < 1:
            raise ValueError(f"replicas must be at least 1, got {replicas}")
        if collision_policy not in COLLISION_POLICIES:
            raise ValueError(f"Unknown collision policy: {collision_policy}")
        if hash_fn is None:
            if hash_name not in HASHERS:
                raise ValueError(f"Unknown hash function: {hash_name}")
            if hash_name == "sha1" and seed != 0:
                raise ValueError("sha1 hashing does not take a seed")
            hash_fn = partial(HASHERS[hash_name], seed=seed)
        self._replicas = replicas
        self._hash_name = hash_name
        self._seed = seed
        self._collision_policy = collision_policy
        self._hash_fn = hash_fn
        self._lock = threading.RLock()
        self._positions: List[int] = []
        self._owners: Dict[int, str] = {}
        self._members: set[str] = set()

    @classmethod
    def from_config(cls, config) -> "ConsistentHashRing":
        config.validate()
        return cls(
            replicas=config.replicas,
            hash_name=config.hash_name,
            seed=config.seed,
            collision_policy=config.collision_policy,
        )

    @property
    def replicas(self) -> int:
        return self._replicas

    def _hash(self, data: str) -> int:
        return self._hash_fn(data.encode("utf-8", "surrogatepass")) & MASK32

    def _position_for_vn(self, node_id: str, replica_idx: int) -> int:
        return self._hash(node_id + str(replica_idx))

    def _claim(self, pos: int, node_id: str) -> int:
        prev = self._owners.get(pos)
        if prev is not None:
            if self._collision_policy == "probe":
                while pos in self._owners:
                    pos = (pos + 1) & MASK32
            else:
                log.warning("position collision pos=%d owner=%s overwritten by node=%s", pos, prev, node_id)
        self._positions.append(pos)
        self._owners[pos] = node_id
        return pos

    def add_node(self, node_id: str) -> None:
        with self._lock:
            if node_id in self._members:
                log.debug("node=%s already on ring", node_id)
                return
            self._members.add(node_id)
            for i in range(self._replicas):
                self._claim(self._position_for_vn(node_id, i), node_id)
            self._positions.sort()
        log.debug("added node=%s vnodes=%d", node_id, self._replicas)

    def add_nodes(self, node_ids: Iterable[str]) -> None:
        for node_id in node_ids:
            self.add_node(node_id)

    def remove_node(self, node_id: str) -> None:
        with self._lock:
            if node_id not in self._members:
                return
            self._members.discard(node_id)
            # duplicate positions all go with their single owner entry
            gone = {pos for pos, owner in self._owners.items() if owner == node_id}
            self._positions = [pos for pos in self._positions if pos not in gone]
            for pos in gone:
                del self._owners[pos]
        log.debug("removed node=%s", node_id)

    def _successor_index(self, key: str) -> int:
        idx = bisect.bisect_left(self._positions, self._hash(key))
        if idx == len(self._positions):
            idx = 0
        return idx

    def get_node(self, key: str) -> Optional[str]:
        with self._lock:
            if not self._positions:
                return None
            return self._owners[self._positions[self._successor_index(key)]]

    def get_nodes_for_key(self, key: str, count: int = 1) -> List[str]:
        """Up to ``count`` distinct nodes, clockwise from the key's owner."""
        with self._lock:
            if not self._positions or count <= 0:
                return []
            n = len(self._positions)
            start = self._successor_index(key)
            out: List[str] = []
            for step in range(n):
                nid = self._owners[self._positions[(start + step) % n]]
                if nid not in out:
                    out.append(nid)
                    if len(out) == count:
                        break
            return out

    def nodes(self) -> List[str]:
        with self._lock:
            return sorted(self._members)

    def size(self) -> int:
        with self._lock:
            return len(self._members)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, node_id: object) -> bool:
        with self._lock:
            return node_id in self._members

    def positions(self) -> List[int]:
        with self._lock:
            return list(self._positions)

    def dump_tokens(self) -> List[Tuple[int, str]]:
        with self._lock:
            return [(p, self._owners[p]) for p in self._positions]

    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {"nodes": len(self._members), "positions": len(self._positions), "replicas": self._replicas}

    def clone(self) -> "ConsistentHashRing":
        """Copy the ring for before/after comparison"""
        other = ConsistentHashRing(
            replicas=self._replicas,
            hash_name=self._hash_name,
            seed=self._seed,
            collision_policy=self._collision_policy,
            hash_fn=self._hash_fn,
        )
        with self._lock:
            other._positions = list(self._positions)
            other._owners = dict(self._owners)
            other._members = set(self._members)
        return other
