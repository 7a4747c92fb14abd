"""Key movement between two ring states.

A membership change should only move keys onto nodes that joined or off
nodes that left. ``diff_rings`` reports every owner change and flags the
ones that break that rule.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Dict, Tuple, Optional, FrozenSet
import logging

from consistent_hash_ring import ConsistentHashRing

log = logging.getLogger(__name__)

Move = Tuple[Optional[str], Optional[str]]


@dataclass
class RingDiff:
    added: FrozenSet[str]
    removed: FrozenSet[str]
    checked: int = 0
    moved: Dict[str, Move] = field(default_factory=dict)
    unexpected: Dict[str, Move] = field(default_factory=dict)

    @property
    def minimal(self) -> bool:
        return not self.unexpected

    def moved_fraction(self) -> float:
        return len(self.moved) / self.checked if self.checked else 0.0

    def summary(self) -> Dict[str, object]:
        return {
            "checked": self.checked,
            "moved": len(self.moved),
            "unexpected": len(self.unexpected),
            "added": sorted(self.added),
            "removed": sorted(self.removed),
        }


def _expected(move: Move, added: FrozenSet[str], removed: FrozenSet[str]) -> bool:
    old, new = move
    if old is None or new is None:
        # ring went from or to empty
        return True
    return old in removed or new in added


def diff_rings(keys: Iterable[str], ring_before: ConsistentHashRing, ring_after: ConsistentHashRing) -> RingDiff:
    before_nodes = set(ring_before.nodes())
    after_nodes = set(ring_after.nodes())
    diff = RingDiff(
        added=frozenset(after_nodes - before_nodes),
        removed=frozenset(before_nodes - after_nodes),
    )
    for key in keys:
        diff.checked += 1
        move = (ring_before.get_node(key), ring_after.get_node(key))
        if move[0] == move[1]:
            continue
        diff.moved[key] = move
        if not _expected(move, diff.added, diff.removed):
            diff.unexpected[key] = move

    if diff.unexpected:
        log.warning("%d of %d moved keys changed owner between surviving nodes",
                    len(diff.unexpected), len(diff.moved))
    return diff
