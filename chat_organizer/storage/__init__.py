"""
Snapshot persistence for conversations
"""

from .conversation_store import ConversationStore, conversation_filename

__all__ = [
    "ConversationStore",
    "conversation_filename",
]
