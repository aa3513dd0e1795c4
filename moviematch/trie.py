"""
Prefix index over normalized catalog titles.

Responsibilities:
- Map every inserted title to the ids stored under it.
- Return the ids of all inserted titles that are a prefix of a query.

Non-Responsibilities:
- No normalization (callers pass normalized strings).
- No scoring.

Invariant:
The index is built once before matching and never mutated afterwards.
"""

from typing import Dict, List


class TrieNode:
    """A node owns its children; ids are stored only where a title ends."""

    __slots__ = ("children", "ids")

    def __init__(self):
        self.children: Dict[str, "TrieNode"] = {}
        self.ids: List[str] = []


class PrefixIndex:
    def __init__(self):
        self.root = TrieNode()
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def insert(self, title: str, movie_id: str) -> None:
        """Store ``movie_id`` at the node where ``title`` ends."""
        if not title:
            return
        node = self.root
        for ch in title:
            child = node.children.get(ch)
            if child is None:
                child = TrieNode()
                node.children[ch] = child
            node = child
        node.ids.append(movie_id)
        self._size += 1

    def candidates(self, query: str) -> List[str]:
        """
        Walk ``query`` from the root and collect the ids of every node visited.

        Stops at the first character without a child, so only titles that are a
        prefix of ``query`` (or equal to it) contribute.

        Args:
            query: Normalized string, typically a document title

        Returns:
            Ids in walk order; an id inserted under several prefixes may repeat
        """
        ids: List[str] = []
        node = self.root
        for ch in query:
            node = node.children.get(ch)
            if node is None:
                break
            ids.extend(node.ids)
        return ids
