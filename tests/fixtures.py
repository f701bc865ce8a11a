"""
Shared test fakes for embedding and label providers
"""

import asyncio
import hashlib
import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from chat_organizer.conversation import ConversationIndex, create_index
from chat_organizer.models import NodeRank, Passage


def unit(*values: float) -> np.ndarray:
    """Normalized float vector."""
    vec = np.array(values, dtype=np.float64)
    return vec / np.linalg.norm(vec)


def at_angle(score: float) -> np.ndarray:
    """2-d unit vector whose cosine similarity with [1, 0] is ``score``."""
    return np.array([score, math.sqrt(1.0 - score * score)], dtype=np.float64)


class FakeEmbeddingClient:
    """Returns fixed vectors for known texts and records every call.

    Texts not in ``vectors`` get a deterministic hash-based vector unless
    ``default`` is given. Texts in ``failing`` raise RuntimeError.
    """

    def __init__(
        self,
        vectors: Optional[Dict[str, Sequence[float]]] = None,
        default: Optional[Sequence[float]] = None,
        failing: Sequence[str] = (),
        delay: float = 0.0,
        dim: int = 8,
    ):
        self.vectors = {k: np.asarray(v, dtype=np.float64) for k, v in (vectors or {}).items()}
        self.default = None if default is None else np.asarray(default, dtype=np.float64)
        self.failing = set(failing)
        self.delay = delay
        self.dim = dim
        self.calls: List[str] = []

    async def embed(self, text: str) -> np.ndarray:
        self.calls.append(text)
        if self.delay:
            await asyncio.sleep(self.delay)
        if text in self.failing:
            raise RuntimeError(f"embedding service unavailable for {text!r}")
        if text in self.vectors:
            return self.vectors[text]
        if self.default is not None:
            return self.default
        h = hashlib.sha256(text.encode()).hexdigest()
        vec = np.array([int(h[i:i + 2], 16) / 255.0 for i in range(0, self.dim * 2, 2)])
        return vec / (np.linalg.norm(vec) + 1e-10)


class FakeLabeler:
    """Labels topics from a queue of canned answers, or by echoing the text."""

    def __init__(self, labels: Optional[List[str]] = None, fail: bool = False, delay: float = 0.0):
        self.labels = list(labels or [])
        self.fail = fail
        self.delay = delay
        self.calls: List[tuple] = []

    async def generate_label(self, text: str, existing_labels: List[str]) -> str:
        self.calls.append((text, list(existing_labels)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            from chat_organizer.errors import LabelError
            raise LabelError("label service unavailable")
        if self.labels:
            return self.labels.pop(0)
        return f"Label: {text[:20]}"


def make_passage(index: int, text: str, first_sentence: Optional[str] = None) -> Passage:
    return Passage(index=index, full_text=text, first_sentence=first_sentence or text)


def index_with_topic(label: str, vector: Sequence[float], conversation_id: str = "conv-1"):
    """Conversation holding one rank-1 topic with a registered vector."""
    index = create_index(conversation_id)
    node = index.tree.spawn_node("root", label, NodeRank.TOPIC, np.asarray(vector, dtype=np.float64))
    return index, node.id


def assert_counts_consistent(index: ConversationIndex) -> None:
    """Every node's prompt_count equals its own prompts plus its children's counts."""
    tree = index.tree
    for node in tree.nodes():
        expected = len(node.prompt_indices) + sum(
            tree.require(child_id).prompt_count for child_id in node.children
        )
        assert node.prompt_count == expected, f"{node.id}: {node.prompt_count} != {expected}"
