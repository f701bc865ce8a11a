"""
Passage text utilities: fingerprints, first-sentence extraction, passage files
"""
import json
import re
from pathlib import Path
from typing import List

from .models import Passage


# Openers that make poor headings; a sentence starting with one is skipped.
FILLER_PREFIXES = [
    re.compile(r"^i need to\b", re.IGNORECASE),
    re.compile(r"^i see (the|that|you)\b", re.IGNORECASE),
    re.compile(r"^let me\b", re.IGNORECASE),
]

MIN_SENTENCE_CHARS = 15
MAX_SENTENCE_CHARS = 120
PASSAGE_SEPARATOR = re.compile(r"^---\s*$", re.MULTILINE)


class ContentProcessor:
    """Handles passage text: hashing, short forms and source files"""

    @staticmethod
    def fingerprint(text: str) -> str:
        """Deterministic 32-bit djb2-variant hash of text as 8 hex chars.

        Iterates UTF-16 code units so identical text always yields the same
        fingerprint regardless of how non-BMP characters are represented.
        """
        h = 5381
        data = text.encode("utf-16-le", errors="surrogatepass")
        for i in range(0, len(data), 2):
            unit = data[i] | (data[i + 1] << 8)
            h = (h * 31 + unit) & 0xFFFFFFFF
        return f"{h:08x}"

    @staticmethod
    def extract_first_sentence(text: str) -> str:
        """Pick a short, heading-like sentence from a passage."""
        cleaned = re.sub(r"^#{1,6}\s+", "", text, count=1, flags=re.MULTILINE)
        cleaned = re.sub(r"\*{1,2}([^*]+)\*{1,2}", r"\1", cleaned)
        cleaned = re.sub(r"`[^`]+`", "", cleaned)
        cleaned = cleaned.strip()

        sentences = [
            s.strip() for s in re.split(r"(?<=[.!?])\s+", cleaned)
            if len(s.strip()) >= MIN_SENTENCE_CHARS
        ]

        chosen = next(
            (s for s in sentences if not any(p.search(s) for p in FILLER_PREFIXES)),
            sentences[0] if sentences else cleaned,
        )

        if len(chosen) > MAX_SENTENCE_CHARS:
            return chosen[:MAX_SENTENCE_CHARS - 3] + "…"
        return chosen

    @staticmethod
    def split_passages(raw: str) -> List[str]:
        """Split a text document into passages on ``---`` separator lines."""
        return [part.strip() for part in PASSAGE_SEPARATOR.split(raw) if part.strip()]

    @staticmethod
    def load_passages(file_path: Path, start: int = 0) -> List[Passage]:
        """Load passages from a JSON list or a ``---`` separated text file.

        JSON items may be plain strings or objects with ``text`` and optional
        ``index`` / ``first_sentence``. Missing indices default to ``start``
        plus the list position, so a second file appended to a conversation
        continues its numbering.
        """
        raw = file_path.read_text(encoding="utf-8")

        if file_path.suffix.lower() != ".json":
            return [Passage.from_text(start + i, text)
                    for i, text in enumerate(ContentProcessor.split_passages(raw))]

        data = json.loads(raw)
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON list of passages in {file_path}")

        passages = []
        for position, item in enumerate(data):
            if isinstance(item, str):
                passages.append(Passage.from_text(start + position, item))
                continue
            if not isinstance(item, dict) or "text" not in item:
                raise ValueError(f"Passage {position} in {file_path} has no text")
            index = int(item.get("index", start + position))
            if item.get("first_sentence"):
                passages.append(Passage(index=index, full_text=item["text"],
                                        first_sentence=item["first_sentence"]))
            else:
                passages.append(Passage.from_text(index, item["text"]))
        return passages
