"""
In-memory topic tree: nodes addressed by id, parent/child links, subtree
prompt counts and a non-persisted vector per node.
"""

import uuid
from typing import Dict, List, Optional

import numpy as np

from .errors import DuplicatePlacementError, NodeNotFoundError, TreeError
from .models import Candidate, NodeRank, TopicNode


class TopicTree:
    """Arena of topic nodes rooted at a single synthetic rank-0 node.

    Mutations check that every node they name exists and raise
    NodeNotFoundError otherwise. Nothing is rolled back across calls.
    """

    ROOT_ID = "root"

    def __init__(self, nodes: Dict[str, TopicNode]):
        self._nodes: Dict[str, TopicNode] = dict(nodes)
        self._vectors: Dict[str, np.ndarray] = {}
        self._placements: Dict[int, str] = {}
        for node in self._nodes.values():
            for prompt_index in node.prompt_indices:
                self._placements.setdefault(prompt_index, node.id)

    @classmethod
    def create_root(cls) -> "TopicTree":
        """Build a tree holding only the empty root node."""
        root = TopicNode(id=cls.ROOT_ID, label="root", rank=NodeRank.ROOT)
        return cls({root.id: root})

    # -- lookup ---------------------------------------------------------

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: str) -> bool:
        return node_id in self._nodes

    @property
    def root(self) -> TopicNode:
        return self.require(self.ROOT_ID)

    @property
    def has_topics(self) -> bool:
        """True once anything besides the root exists."""
        return len(self._nodes) > 1

    def nodes(self) -> List[TopicNode]:
        """All nodes in arena (creation/load) order."""
        return list(self._nodes.values())

    def get(self, node_id: str) -> Optional[TopicNode]:
        return self._nodes.get(node_id)

    def require(self, node_id: str) -> TopicNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def labels(self) -> List[str]:
        """Labels of every non-root node."""
        return [n.label for n in self._nodes.values() if n.rank > NodeRank.ROOT]

    def placement_of(self, prompt_index: int) -> Optional[str]:
        """Id of the node a prompt index is attached to, if any."""
        return self._placements.get(prompt_index)

    # -- mutation -------------------------------------------------------

    def spawn_node(
        self,
        parent_id: str,
        label: str,
        rank: NodeRank,
        vector: Optional[np.ndarray] = None,
    ) -> TopicNode:
        """Create a node, append it to the parent's children and register its vector."""
        parent = self.require(parent_id)
        rank = NodeRank(rank)
        if rank == NodeRank.ROOT:
            raise TreeError("Only the synthetic root may have rank 0")

        node = TopicNode(id=self._new_id(), label=label, rank=rank)
        self._nodes[node.id] = node
        parent.children.append(node.id)
        parent.touch()

        if vector is not None:
            self.set_vector(node.id, vector)
        return node

    def insert_prompt(self, node_id: str, prompt_index: int) -> None:
        """Attach a prompt index to a node. Re-inserting the same pair is a no-op.

        Call recount() afterwards to propagate counts.
        """
        node = self.require(node_id)
        existing = self._placements.get(prompt_index)
        if existing is not None and existing != node_id:
            raise DuplicatePlacementError(prompt_index, existing, node_id)
        if prompt_index not in node.prompt_indices:
            node.prompt_indices.append(prompt_index)
            self._placements[prompt_index] = node_id
        node.touch()

    def recount(self) -> int:
        """Recompute prompt_count for every node reachable from the root.

        Full post-order traversal; returns the root's total.
        """
        totals: Dict[str, int] = {}
        stack = [(self.ROOT_ID, False)]
        while stack:
            node_id, expanded = stack.pop()
            node = self._nodes.get(node_id)
            if node is None:
                continue
            if not expanded:
                stack.append((node_id, True))
                stack.extend((child_id, False) for child_id in reversed(node.children))
                continue
            total = len(node.prompt_indices) + sum(totals.get(c, 0) for c in node.children)
            node.prompt_count = total
            totals[node_id] = total
        return totals.get(self.ROOT_ID, 0)

    # -- vectors --------------------------------------------------------

    def set_vector(self, node_id: str, vector: np.ndarray) -> None:
        self.require(node_id)
        self._vectors[node_id] = np.asarray(vector, dtype=np.float64)

    def vector(self, node_id: str) -> Optional[np.ndarray]:
        return self._vectors.get(node_id)

    def has_vector(self, node_id: str) -> bool:
        return node_id in self._vectors

    def nodes_missing_vectors(self) -> List[TopicNode]:
        """Non-root nodes that still need an embedding."""
        return [
            n for n in self._nodes.values()
            if n.rank > NodeRank.ROOT and n.id not in self._vectors
        ]

    def child_candidates(self, parent_id: str, rank: Optional[NodeRank] = None) -> List[Candidate]:
        """Direct children of a node that have a vector, optionally filtered by rank."""
        parent = self._nodes.get(parent_id)
        if parent is None:
            return []
        candidates = []
        for child_id in parent.children:
            child = self._nodes.get(child_id)
            if child is None or child_id not in self._vectors:
                continue
            if rank is not None and child.rank != rank:
                continue
            candidates.append(Candidate(node_id=child_id, vector=self._vectors[child_id]))
        return candidates

    def all_embedded_candidates(self) -> List[Candidate]:
        """Every node with a vector, in arena order."""
        return [
            Candidate(node_id=node_id, vector=self._vectors[node_id])
            for node_id in self._nodes
            if node_id in self._vectors
        ]

    # -- integrity and serialization -----------------------------------

    def validate(self) -> None:
        """Raise TreeError if parent links, counts or placements are inconsistent."""
        self._validate_structure()
        for node in self._nodes.values():
            expected = len(node.prompt_indices) + sum(
                self._nodes[c].prompt_count for c in node.children
            )
            if node.prompt_count != expected:
                raise TreeError(
                    f"Node {node.id} prompt_count {node.prompt_count} != subtree total {expected}"
                )

    def _validate_structure(self) -> None:
        if self.ROOT_ID not in self._nodes:
            raise TreeError("Tree has no root node")

        parents: Dict[str, str] = {}
        for node_id, node in self._nodes.items():
            if node.id != node_id:
                raise TreeError(f"Node stored under {node_id} reports id {node.id}")
            for child_id in node.children:
                if child_id not in self._nodes:
                    raise TreeError(f"Node {node.id} lists missing child {child_id}")
                if child_id == self.ROOT_ID:
                    raise TreeError("Root cannot be a child")
                if child_id in parents:
                    raise TreeError(
                        f"Node {child_id} has two parents: {parents[child_id]} and {node.id}"
                    )
                parents[child_id] = node.id

        for node_id in self._nodes:
            if node_id != self.ROOT_ID and node_id not in parents:
                raise TreeError(f"Node {node_id} is not linked under any parent")

        reachable = {self.ROOT_ID}
        frontier = [self.ROOT_ID]
        while frontier:
            for child_id in self._nodes[frontier.pop()].children:
                if child_id not in reachable:
                    reachable.add(child_id)
                    frontier.append(child_id)
        if len(reachable) != len(self._nodes):
            raise TreeError("Tree contains nodes unreachable from the root")

        seen: Dict[int, str] = {}
        for node in self._nodes.values():
            for prompt_index in node.prompt_indices:
                if prompt_index in seen:
                    raise TreeError(
                        f"Prompt {prompt_index} appears in {seen[prompt_index]} and {node.id}"
                    )
                seen[prompt_index] = node.id

    def to_dict(self) -> Dict[str, TopicNode]:
        """Copy of the node arena for snapshots (vectors excluded)."""
        return {node_id: node.model_copy(deep=True) for node_id, node in self._nodes.items()}

    @classmethod
    def from_dict(cls, nodes: Dict[str, TopicNode]) -> "TopicTree":
        tree = cls({node_id: node.model_copy(deep=True) for node_id, node in nodes.items()})
        tree._validate_structure()
        tree.recount()
        tree.validate()
        return tree

    def _new_id(self) -> str:
        while True:
            node_id = f"node_{uuid.uuid4().hex[:12]}"
            if node_id not in self._nodes:
                return node_id
