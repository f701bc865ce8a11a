"""
JSON file store for conversation snapshots, one file per conversation.
"""

import hashlib
import re
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from ..conversation import ConversationIndex
from ..logging_config import get_logger
from ..models import ConversationSnapshot

logger = get_logger("storage")


def conversation_filename(conversation_id: str) -> str:
    """Filesystem-safe file name for a conversation id.

    The readable stem is lossy, so a hash of the raw id keeps ids that
    sanitize alike (``team/a`` and ``team_a``) in separate files.
    """
    safe = re.sub(r"[^A-Za-z0-9_.-]+", "_", conversation_id).strip("._")[:64]
    id_hash = hashlib.sha256(conversation_id.encode("utf-8")).hexdigest()[:10]
    return f"{safe or 'conversation'}-{id_hash}.json"


class ConversationStore:
    """Persists ConversationIndex snapshots under a data directory.

    Vectors are never written; callers re-embed after load.
    """

    def __init__(self, data_dir: Path = Path("conversations")):
        self.data_dir = data_dir
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, conversation_id: str) -> Path:
        return self.data_dir / conversation_filename(conversation_id)

    def exists(self, conversation_id: str) -> bool:
        return self.path_for(conversation_id).exists()

    def load(self, conversation_id: str) -> Optional[ConversationIndex]:
        """Load and validate a conversation, or None if nothing is stored."""
        path = self.path_for(conversation_id)
        if not path.exists():
            return None

        try:
            snapshot = ConversationSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ValueError(f"Stored conversation {conversation_id} is malformed: {e}") from e

        if snapshot.conversation_id != conversation_id:
            raise ValueError(
                f"{path} holds conversation {snapshot.conversation_id}, expected {conversation_id}"
            )

        index = ConversationIndex.from_snapshot(snapshot)
        logger.debug("Loaded conversation %s: %d prompts, %d nodes",
                     conversation_id, len(index.prompts), len(index.tree))
        return index

    def save(self, index: ConversationIndex) -> Path:
        """Write the full snapshot, replacing any previous one atomically."""
        path = self.path_for(index.conversation_id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(index.snapshot().model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(path)
        logger.debug("Saved conversation %s to %s", index.conversation_id, path)
        return path

    def delete(self, conversation_id: str) -> bool:
        path = self.path_for(conversation_id)
        if not path.exists():
            return False
        path.unlink()
        return True

    def list_conversations(self) -> List[str]:
        """Ids of every stored conversation."""
        ids = []
        for path in sorted(self.data_dir.glob("*.json")):
            try:
                snapshot = ConversationSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
            except ValidationError as e:
                logger.warning("Skipping unreadable snapshot %s: %s", path, e)
                continue
            ids.append(snapshot.conversation_id)
        return ids
