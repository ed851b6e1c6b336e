"""
ShieldNote Commitment Tree

Append-only binary Merkle accumulator over note commitments.

Pairing rule: nodes are paired left to right; when a level has an odd
number of nodes the last one is paired with itself. Paths and roots
produced here are only verifiable with the same rule (see verify_path).
"""

from __future__ import annotations
import logging
from typing import List, Optional, Sequence

from shieldnote.constants import HASH_SIZE, TREE_DEPTH_DEFAULT, TREE_DEPTH_MAX
from shieldnote.core.types import Hash
from shieldnote.crypto.hash import blake2b_256, node_hash
from shieldnote.errors import TreeFullError, InvalidParameterError, SerializationError

logger = logging.getLogger(__name__)


def empty_root() -> Hash:
    """Root of a tree with no leaves: the hash of 32 zero bytes."""
    return blake2b_256(bytes(HASH_SIZE))


def next_level(level: Sequence[Hash]) -> List[Hash]:
    """Hash one level into its parent level, duplicating an odd last node."""
    parents = []
    for i in range(0, len(level), 2):
        left = level[i]
        right = level[i + 1] if i + 1 < len(level) else left
        parents.append(node_hash(left, right))
    return parents


def merkle_root(leaves: Sequence[Hash]) -> Hash:
    """
    Compute the root of a leaf sequence.

    - Empty list returns empty_root()
    - Single element returns that element
    - Otherwise levels are hashed bottom-up

    Args:
        leaves: Leaf commitments in insertion order

    Returns:
        Merkle root hash
    """
    if len(leaves) == 0:
        return empty_root()

    current = list(leaves)
    while len(current) > 1:
        current = next_level(current)
    return current[0]


def verify_path(leaf: Hash, position: int, path: Sequence[Hash], root: Hash) -> bool:
    """
    Recompute the root from a leaf and its path.

    Args:
        leaf: Leaf commitment
        position: Leaf index in the tree
        path: Sibling digests from the leaf level upward
        root: Expected root

    Returns:
        True if the path leads to root
    """
    if position < 0:
        return False

    current = leaf
    index = position
    for sibling in path:
        if index % 2 == 0:
            current = node_hash(current, sibling)
        else:
            current = node_hash(sibling, current)
        index //= 2

    return index == 0 and current == root


class CommitmentTree:
    """
    Append-only commitment accumulator.

    Leaves are never removed or reordered; spends are tracked out of
    band through nullifiers. The root is recomputed from the full leaf
    set on demand, which keeps the structure trivially consistent for
    the note counts of a local wallet.
    """

    def __init__(self, depth: int = TREE_DEPTH_DEFAULT, leaves: Optional[Sequence[Hash]] = None):
        if depth < 1 or depth > TREE_DEPTH_MAX:
            raise InvalidParameterError("depth", f"must be in 1..{TREE_DEPTH_MAX}")

        self._depth = depth
        self._leaves: List[Hash] = []
        self._root = empty_root()

        for leaf in leaves or []:
            self.insert(leaf)

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def capacity(self) -> int:
        """Maximum number of leaves (2^depth)."""
        return 1 << self._depth

    @property
    def size(self) -> int:
        return len(self._leaves)

    def __len__(self) -> int:
        return len(self._leaves)

    @property
    def leaves(self) -> List[Hash]:
        """Copy of the leaf sequence."""
        return list(self._leaves)

    def leaf(self, position: int) -> Optional[Hash]:
        if 0 <= position < len(self._leaves):
            return self._leaves[position]
        return None

    def insert(self, commitment: Hash) -> int:
        """
        Append a commitment.

        Args:
            commitment: 32-byte note commitment

        Returns:
            Position of the new leaf

        Raises:
            TreeFullError: If 2^depth leaves are already present
        """
        if len(self._leaves) >= self.capacity:
            raise TreeFullError(self.capacity)

        position = len(self._leaves)
        self._leaves.append(commitment)
        self._root = merkle_root(self._leaves)

        logger.debug(f"Inserted commitment {commitment.hex()[:16]} at position {position}")
        return position

    def _prefix(self, size: Optional[int]) -> List[Hash]:
        if size is None:
            return self._leaves
        if size < 0 or size > len(self._leaves):
            raise InvalidParameterError("size", f"must be in 0..{len(self._leaves)}")
        return self._leaves[:size]

    def root(self, size: Optional[int] = None) -> Hash:
        """
        Root over all leaves, or over the first `size` leaves.

        A historical size gives the anchor the tree had at that point.
        """
        if size is None:
            return self._root
        return merkle_root(self._prefix(size))

    def path(self, position: int, size: Optional[int] = None) -> Optional[List[Hash]]:
        """
        Sibling digests for a leaf, bottom level first.

        When a node has no sibling its own digest is recorded, matching
        the duplication rule used for the root.

        Args:
            position: Leaf index
            size: Tree size to compute against (defaults to current size)

        Returns:
            Path, or None if position is not a leaf of that tree
        """
        level = list(self._prefix(size))
        if position < 0 or position >= len(level):
            return None

        path = []
        index = position
        while len(level) > 1:
            sibling = index + 1 if index % 2 == 0 else index - 1
            if sibling < len(level):
                path.append(level[sibling])
            else:
                path.append(level[index])
            level = next_level(level)
            index //= 2

        return path

    def contains(self, commitment: Hash) -> bool:
        return commitment in self._leaves

    def copy(self) -> CommitmentTree:
        tree = CommitmentTree(depth=self._depth)
        tree._leaves = list(self._leaves)
        tree._root = self._root
        return tree

    def to_dict(self) -> dict:
        """Export tree state (leaves + root) for persistence."""
        return {
            "depth": self._depth,
            "size": len(self._leaves),
            "root": self._root.hex(),
            "leaves": [leaf.hex() for leaf in self._leaves],
        }

    @classmethod
    def from_dict(cls, data: dict) -> CommitmentTree:
        """
        Restore a tree exported by to_dict().

        Raises:
            SerializationError: If the stored root does not match the leaves
        """
        try:
            leaves = [Hash.from_hex(h) for h in data["leaves"]]
            tree = cls(depth=int(data.get("depth", TREE_DEPTH_DEFAULT)))
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"malformed tree snapshot: {e}") from e

        if len(leaves) > tree.capacity:
            raise SerializationError(f"tree snapshot exceeds capacity {tree.capacity}")

        tree._leaves = leaves
        tree._root = merkle_root(leaves)

        stored_root = data.get("root")
        if stored_root is not None and stored_root != tree._root.hex():
            raise SerializationError("tree root does not match leaves")

        return tree
