"""Disjoint set with path compression and union by rank."""
from __future__ import annotations

from typing import Dict, Generic, Hashable, List, TypeVar

T = TypeVar("T", bound=Hashable)


class UnionFind(Generic[T]):
    """Disjoint set over hashable items.

    ``find`` on an unknown item creates a singleton set for it.
    """

    def __init__(self) -> None:
        self.parent: Dict[T, T] = {}
        self.rank: Dict[T, int] = {}

    def make_set(self, x: T) -> None:
        if x not in self.parent:
            self.parent[x] = x
            self.rank[x] = 0

    def find(self, x: T) -> T:
        if x not in self.parent:
            self.make_set(x)
            return x
        root = x
        while self.parent[root] != root:
            root = self.parent[root]
        # Path compression
        while self.parent[x] != root:
            self.parent[x], x = root, self.parent[x]
        return root

    def union(self, a: T, b: T) -> None:
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return
        if self.rank[root_a] < self.rank[root_b]:
            self.parent[root_a] = root_b
        elif self.rank[root_a] > self.rank[root_b]:
            self.parent[root_b] = root_a
        else:
            self.parent[root_b] = root_a
            self.rank[root_a] += 1

    def connected(self, a: T, b: T) -> bool:
        return self.find(a) == self.find(b)

    def get_groups(self) -> Dict[T, List[T]]:
        """Return ``root -> members`` with members in first-seen order."""
        groups: Dict[T, List[T]] = {}
        for item in list(self.parent):
            groups.setdefault(self.find(item), []).append(item)
        return groups

    def __len__(self) -> int:
        return len(self.parent)

    def __contains__(self, x: object) -> bool:
        return x in self.parent
