"""
Conversation aggregate: ordered prompt records, topic tree and placement cache.
"""

from typing import List, Optional

from .cache import PlacementCache
from .errors import TreeError
from .models import ConversationSnapshot, PromptRecord
from .tree import TopicTree


class ConversationIndex:
    """Everything the pipeline knows about one conversation.

    Vectors live on the tree in memory only; snapshot() leaves them out.
    """

    def __init__(
        self,
        conversation_id: str,
        tree: TopicTree,
        cache: Optional[PlacementCache] = None,
        prompts: Optional[List[PromptRecord]] = None,
    ):
        self.conversation_id = conversation_id
        self.tree = tree
        self.cache = cache or PlacementCache()
        self.prompts: List[PromptRecord] = list(prompts or [])

    def has_prompt(self, prompt_index: int) -> bool:
        return any(p.index == prompt_index for p in self.prompts)

    def next_prompt_index(self) -> int:
        """First index past every recorded prompt; 0 for a new conversation."""
        return max((p.index for p in self.prompts), default=-1) + 1

    def add_prompt(self, record: PromptRecord) -> None:
        """Append a record in arrival order."""
        self.prompts.append(record)

    def remove_prompt(self, prompt_index: int) -> Optional[PromptRecord]:
        """Drop the most recent record with this index (rollback of add_prompt)."""
        for position in range(len(self.prompts) - 1, -1, -1):
            if self.prompts[position].index == prompt_index:
                return self.prompts.pop(position)
        return None

    def validate(self) -> None:
        """Check tree invariants and that every cache entry names a live node."""
        self.tree.validate()
        missing = sorted(node_id for node_id in self.cache.node_ids() if node_id not in self.tree)
        if missing:
            raise TreeError(f"Placement cache references missing node(s): {', '.join(missing)}")

    def snapshot(self) -> ConversationSnapshot:
        return ConversationSnapshot(
            conversation_id=self.conversation_id,
            prompts=list(self.prompts),
            nodes=self.tree.to_dict(),
            cache=self.cache.to_dict(),
        )

    @classmethod
    def from_snapshot(cls, snapshot: ConversationSnapshot) -> "ConversationIndex":
        """Rebuild an index from stored state. Vectors must be re-embedded afterwards."""
        index = cls(
            conversation_id=snapshot.conversation_id,
            tree=TopicTree.from_dict(snapshot.nodes),
            cache=PlacementCache(snapshot.cache),
            prompts=snapshot.prompts,
        )
        index.validate()
        return index


def create_index(conversation_id: str) -> ConversationIndex:
    """Start an empty conversation whose tree holds only the root."""
    return ConversationIndex(conversation_id=conversation_id, tree=TopicTree.create_root())
