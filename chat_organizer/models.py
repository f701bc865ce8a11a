"""
Data models for topic nodes, prompt records and classification results
"""
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional

import numpy as np
from pydantic import BaseModel, Field


class NodeRank(IntEnum):
    """Depth of a node in the topic tree"""
    ROOT = 0
    TOPIC = 1
    SUBTOPIC = 2
    DETAIL = 3  # reserved, never produced by the pipeline


class TopicNode(BaseModel):
    """A node in the topic tree."""

    id: str
    label: str
    rank: NodeRank
    children: List[str] = Field(default_factory=list)
    prompt_indices: List[int] = Field(default_factory=list)
    prompt_count: int = Field(ge=0, default=0)
    created_at: float = Field(default_factory=time.time)
    updated_at: float = Field(default_factory=time.time)

    def touch(self) -> None:
        self.updated_at = time.time()


class PromptRecord(BaseModel):
    """One classified passage. Immutable once created."""

    model_config = {"frozen": True}

    index: int
    full_text: str
    first_sentence: str
    hash: str


class CacheEntry(BaseModel):
    """Previously computed placement for a passage fingerprint."""

    node_id: str
    confidence: float


class ConversationSnapshot(BaseModel):
    """Durable state of one conversation. Vectors are never included."""

    conversation_id: str
    prompts: List[PromptRecord] = Field(default_factory=list)
    nodes: Dict[str, TopicNode] = Field(default_factory=dict)
    cache: Dict[str, CacheEntry] = Field(default_factory=dict)


@dataclass
class Passage:
    """A unit of text offered for classification"""
    index: int
    full_text: str
    first_sentence: str

    @classmethod
    def from_text(cls, index: int, text: str) -> "Passage":
        """Build a passage, deriving its first sentence from the text."""
        from .content_processor import ContentProcessor
        return cls(index=index, full_text=text,
                   first_sentence=ContentProcessor.extract_first_sentence(text))


@dataclass
class ClassifyResult:
    """Where a passage was placed"""
    node_id: str
    confidence: float
    is_new_node: bool


@dataclass(eq=False)
class Candidate:
    """A node offered to best_match together with its vector"""
    node_id: str
    vector: np.ndarray


@dataclass
class Match:
    """Winning candidate of a similarity scan"""
    node_id: str
    score: float


@dataclass
class IngestionOutcome:
    """Result of pushing one passage through the ingestion queue"""
    passage: Passage
    result: Optional[ClassifyResult] = None
    error: Optional[BaseException] = None
    skipped: bool = False
    finished_at: float = field(default_factory=time.time)

    @property
    def ok(self) -> bool:
        return self.result is not None
