"""
Topic label generation using LLM providers
"""
import json
from typing import Any, Dict, List, Optional, Protocol

from .errors import LabelError
from .logging_config import get_logger

logger = get_logger("labeler")

FALLBACK_LABEL_CHARS = 40
EMPTY_LABEL = "Untitled topic"


class LabelGenerator(Protocol):
    """Anything that names a topic (allows easy test mocking)."""

    async def generate_label(self, text: str, existing_labels: List[str]) -> str: ...


def fallback_label(text: str) -> str:
    """Local label used when generation fails: a truncated prefix of the text."""
    return text[:FALLBACK_LABEL_CHARS].strip() or EMPTY_LABEL


class TopicLabeler:
    """Asks an LLM provider for a short category label"""

    def __init__(self, llm_provider):
        self.llm_provider = llm_provider

    def get_label_prompt(self, text: str, existing_labels: List[str]) -> str:
        """Build the label prompt, listing existing labels to steer away from duplicates."""
        existing = ", ".join(existing_labels) if existing_labels else "none"
        return "\n".join([
            "Generate a concise 2-5 word category label for the following conversation topic.",
            "The label should be clearly distinct from existing labels.",
            f"Existing labels: {existing}",
            f'Topic text: "{text}"',
            'Respond ONLY with valid JSON in this exact shape: { "label": "Your Label Here" }',
        ])

    async def generate_label(self, text: str, existing_labels: List[str]) -> str:
        """Return a label for text. Raises LabelError on any failure."""
        prompt = self.get_label_prompt(text, existing_labels)

        try:
            response = await self.llm_provider.generate(prompt, json_mode=True)
        except Exception as e:
            raise LabelError(f"Label generation failed: {e}") from e

        parsed = self.parse_label_response(response.content)
        label = parsed.get("label") if parsed else None
        if not isinstance(label, str) or not label.strip():
            raise LabelError(f"Label response had no usable label: {response.content[:200]!r}")

        logger.debug("Generated label %r for text of %d chars", label.strip(), len(text))
        return label.strip()

    @staticmethod
    def parse_label_response(response_text: str) -> Optional[Dict[str, Any]]:
        """Extract the first JSON object from a response, or None."""
        json_start = response_text.find('{')
        json_end = response_text.rfind('}') + 1
        if json_start == -1 or json_end <= json_start:
            return None
        try:
            result = json.loads(response_text[json_start:json_end])
        except json.JSONDecodeError:
            return None
        return result if isinstance(result, dict) else None
