"""
Tests for the topic tree, placement cache and conversation aggregate
"""

import numpy as np
import pytest

from chat_organizer.cache import PlacementCache
from chat_organizer.conversation import ConversationIndex, create_index
from chat_organizer.errors import DuplicatePlacementError, NodeNotFoundError, TreeError
from chat_organizer.models import NodeRank, PromptRecord
from chat_organizer.tree import TopicTree

from .fixtures import assert_counts_consistent


class TestTopicTree:
    def test_create_root(self):
        tree = TopicTree.create_root()

        assert len(tree) == 1
        assert tree.root.rank == NodeRank.ROOT
        assert tree.root.children == []
        assert tree.root.prompt_count == 0
        assert not tree.has_topics

    def test_spawn_links_child_in_order(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "Databases", NodeRank.TOPIC)
        b = tree.spawn_node("root", "Networking", NodeRank.TOPIC)
        c = tree.spawn_node(a.id, "Indexes", NodeRank.SUBTOPIC)

        assert tree.root.children == [a.id, b.id]
        assert tree.require(a.id).children == [c.id]
        assert tree.has_topics
        assert len({a.id, b.id, c.id}) == 3

    def test_spawn_registers_vector(self):
        tree = TopicTree.create_root()
        with_vec = tree.spawn_node("root", "A", NodeRank.TOPIC, np.array([1.0, 0.0]))
        without = tree.spawn_node("root", "B", NodeRank.TOPIC)

        assert tree.has_vector(with_vec.id)
        assert not tree.has_vector(without.id)
        assert [n.id for n in tree.nodes_missing_vectors()] == [without.id]

    def test_spawn_under_missing_parent_creates_nothing(self):
        tree = TopicTree.create_root()
        with pytest.raises(NodeNotFoundError):
            tree.spawn_node("nope", "Orphan", NodeRank.TOPIC)
        assert len(tree) == 1

    def test_spawn_rank_zero_rejected(self):
        tree = TopicTree.create_root()
        with pytest.raises(TreeError):
            tree.spawn_node("root", "Second root", NodeRank.ROOT)

    def test_insert_prompt_is_idempotent(self):
        tree = TopicTree.create_root()
        node = tree.spawn_node("root", "A", NodeRank.TOPIC)
        tree.insert_prompt(node.id, 3)
        tree.insert_prompt(node.id, 3)

        assert tree.require(node.id).prompt_indices == [3]
        assert tree.placement_of(3) == node.id

    def test_insert_into_missing_node(self):
        tree = TopicTree.create_root()
        with pytest.raises(NodeNotFoundError):
            tree.insert_prompt("missing", 0)

    def test_insert_same_index_elsewhere_rejected(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "A", NodeRank.TOPIC)
        b = tree.spawn_node("root", "B", NodeRank.TOPIC)
        tree.insert_prompt(a.id, 1)

        with pytest.raises(DuplicatePlacementError):
            tree.insert_prompt(b.id, 1)
        assert tree.require(b.id).prompt_indices == []

    def test_recount_sums_subtrees(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "A", NodeRank.TOPIC)
        a1 = tree.spawn_node(a.id, "A1", NodeRank.SUBTOPIC)
        a2 = tree.spawn_node(a.id, "A2", NodeRank.SUBTOPIC)
        b = tree.spawn_node("root", "B", NodeRank.TOPIC)
        tree.insert_prompt(a.id, 0)
        tree.insert_prompt(a1.id, 1)
        tree.insert_prompt(a1.id, 2)
        tree.insert_prompt(a2.id, 3)
        tree.insert_prompt(b.id, 4)

        total = tree.recount()

        assert total == 5
        assert tree.require(a1.id).prompt_count == 2
        assert tree.require(a2.id).prompt_count == 1
        assert tree.require(a.id).prompt_count == 4
        assert tree.require(b.id).prompt_count == 1
        assert tree.root.prompt_count == 5
        tree.validate()

    def test_recount_repairs_drift(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "A", NodeRank.TOPIC)
        tree.insert_prompt(a.id, 0)
        tree.require(a.id).prompt_count = 42

        with pytest.raises(TreeError):
            tree.validate()
        tree.recount()
        tree.validate()

    def test_child_candidates_filters(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "A", NodeRank.TOPIC, np.array([1.0, 0.0]))
        tree.spawn_node("root", "B", NodeRank.TOPIC)
        sub = tree.spawn_node(a.id, "A1", NodeRank.SUBTOPIC, np.array([0.0, 1.0]))

        assert [c.node_id for c in tree.child_candidates("root")] == [a.id]
        assert [c.node_id for c in tree.child_candidates("root", NodeRank.SUBTOPIC)] == []
        assert [c.node_id for c in tree.child_candidates(a.id, NodeRank.SUBTOPIC)] == [sub.id]
        assert tree.child_candidates("missing") == []

    def test_all_embedded_candidates(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "A", NodeRank.TOPIC, np.array([1.0, 0.0]))
        tree.spawn_node("root", "B", NodeRank.TOPIC)
        sub = tree.spawn_node(a.id, "A1", NodeRank.SUBTOPIC, np.array([0.0, 1.0]))

        assert [c.node_id for c in tree.all_embedded_candidates()] == [a.id, sub.id]

    def test_labels_exclude_root(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "A", NodeRank.TOPIC)
        tree.spawn_node(a.id, "A1", NodeRank.SUBTOPIC)
        assert tree.labels() == ["A", "A1"]

    def test_from_dict_drops_vectors_and_validates(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "A", NodeRank.TOPIC, np.array([1.0]))
        tree.insert_prompt(a.id, 0)
        tree.recount()

        restored = TopicTree.from_dict(tree.to_dict())

        assert restored.require(a.id).prompt_indices == [0]
        assert restored.root.prompt_count == 1
        assert not restored.has_vector(a.id)
        assert restored.placement_of(0) == a.id

    def test_from_dict_rejects_orphans(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "A", NodeRank.TOPIC)
        nodes = tree.to_dict()
        nodes["root"].children.remove(a.id)

        with pytest.raises(TreeError):
            TopicTree.from_dict(nodes)

    def test_from_dict_rejects_cycles(self):
        tree = TopicTree.create_root()
        a = tree.spawn_node("root", "A", NodeRank.TOPIC)
        b = tree.spawn_node(a.id, "B", NodeRank.SUBTOPIC)
        nodes = tree.to_dict()
        nodes[b.id].children.append(a.id)

        with pytest.raises(TreeError):
            TopicTree.from_dict(nodes)


class TestPlacementCache:
    def test_lookup_and_store(self):
        cache = PlacementCache()
        assert cache.lookup("abcd1234") is None

        cache.store("abcd1234", "node_1", 0.9)

        entry = cache.lookup("abcd1234")
        assert entry.node_id == "node_1"
        assert entry.confidence == 0.9
        assert "abcd1234" in cache
        assert len(cache) == 1
        assert cache.node_ids() == {"node_1"}


class TestConversationIndex:
    def _record(self, index: int) -> PromptRecord:
        return PromptRecord(index=index, full_text=f"text {index}", first_sentence=f"text {index}",
                            hash=f"{index:08x}")

    def test_add_and_remove_prompt(self):
        index = create_index("conv")
        index.add_prompt(self._record(0))
        index.add_prompt(self._record(1))

        assert index.has_prompt(1)
        removed = index.remove_prompt(1)

        assert removed.index == 1
        assert [p.index for p in index.prompts] == [0]
        assert index.remove_prompt(5) is None

    def test_next_prompt_index(self):
        index = create_index("conv")
        assert index.next_prompt_index() == 0

        index.add_prompt(self._record(3))
        index.add_prompt(self._record(1))

        assert index.next_prompt_index() == 4

    def test_snapshot_round_trip_without_vectors(self):
        index = create_index("conv")
        node = index.tree.spawn_node("root", "A", NodeRank.TOPIC, np.array([1.0, 0.0]))
        index.add_prompt(self._record(0))
        index.tree.insert_prompt(node.id, 0)
        index.tree.recount()
        index.cache.store("00000000", node.id, 0.0)

        restored = ConversationIndex.from_snapshot(index.snapshot())

        assert restored.conversation_id == "conv"
        assert [p.index for p in restored.prompts] == [0]
        assert restored.cache.lookup("00000000").node_id == node.id
        assert restored.tree.require(node.id).label == "A"
        assert restored.tree.nodes_missing_vectors()[0].id == node.id
        assert_counts_consistent(restored)

    def test_snapshot_json_has_no_vectors(self):
        index = create_index("conv")
        index.tree.spawn_node("root", "A", NodeRank.TOPIC, np.array([0.25, 0.75]))
        dumped = index.snapshot().model_dump()
        assert set(dumped) == {"conversation_id", "prompts", "nodes", "cache"}
        for node in dumped["nodes"].values():
            assert set(node) == {"id", "label", "rank", "children", "prompt_indices",
                                 "prompt_count", "created_at", "updated_at"}

    def test_cache_referencing_missing_node_rejected(self):
        index = create_index("conv")
        index.cache.store("deadbeef", "node_gone", 0.5)
        with pytest.raises(TreeError):
            index.validate()
