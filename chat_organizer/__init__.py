"""
Chat organizer: incremental topic hierarchy for streams of chat responses
"""
from .models import (
    CacheEntry, ClassifyResult, ConversationSnapshot, IngestionOutcome,
    NodeRank, Passage, PromptRecord, TopicNode,
)
from .errors import (
    CapabilityError, ConfigError, DuplicatePlacementError, EmbeddingError,
    LabelError, NodeNotFoundError, OrganizerError, TreeError,
)
from .similarity import best_match, cosine_similarity
from .content_processor import ContentProcessor
from .tree import TopicTree
from .cache import PlacementCache
from .conversation import ConversationIndex, create_index
from .labeler import TopicLabeler, fallback_label
from .pipeline import ClassificationPipeline
from .ingestion import IngestionQueue

__all__ = [
    'CacheEntry',
    'ClassifyResult',
    'ConversationSnapshot',
    'IngestionOutcome',
    'NodeRank',
    'Passage',
    'PromptRecord',
    'TopicNode',
    'CapabilityError',
    'ConfigError',
    'DuplicatePlacementError',
    'EmbeddingError',
    'LabelError',
    'NodeNotFoundError',
    'OrganizerError',
    'TreeError',
    'best_match',
    'cosine_similarity',
    'ContentProcessor',
    'TopicTree',
    'PlacementCache',
    'ConversationIndex',
    'create_index',
    'TopicLabeler',
    'fallback_label',
    'ClassificationPipeline',
    'IngestionQueue',
]
