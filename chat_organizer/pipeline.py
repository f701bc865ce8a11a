"""
Classification pipeline: places one passage into a conversation's topic tree.

Steps, first applicable wins:

1. Fingerprint cache hit -> attach to the cached node, no capability calls.
2. Embed the first sentence. Failure aborts the classification.
3. Best rank-1 topic at threshold_high.
4. On a rank-1 hit, best rank-2 child at threshold_high; attach on a hit,
   otherwise spawn a labelled rank-2 node under the topic.
5. No rank-1 hit and the tree is not empty: embed the full text and scan
   every node at threshold_low. A rank-1 hit spawns a rank-2 node under it,
   any other hit attaches directly.
6. Spawn a labelled rank-1 node under the root.
"""

import asyncio
from typing import Optional

import numpy as np

from .config import ThresholdConfig
from .content_processor import ContentProcessor
from .conversation import ConversationIndex
from .errors import EmbeddingError, LabelError
from .labeler import LabelGenerator, fallback_label
from .llm.base import EmbeddingProvider
from .logging_config import get_logger
from .models import ClassifyResult, NodeRank, Passage
from .similarity import best_match
from .tree import TopicTree

logger = get_logger("pipeline")


class ClassificationPipeline:
    """Runs the placement procedure against a ConversationIndex.

    Never keeps a node object across an await; nodes are looked up by id
    after every capability call.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        labeler: LabelGenerator,
        thresholds: Optional[ThresholdConfig] = None,
        timeout: Optional[float] = 30.0,
    ):
        self.embedder = embedder
        self.labeler = labeler
        self.thresholds = thresholds or ThresholdConfig()
        self.timeout = timeout

    async def classify(self, index: ConversationIndex, passage: Passage) -> ClassifyResult:
        """Place a passage and return where it went. Mutates and recounts index.tree.

        Raises:
            EmbeddingError: if the first-sentence embedding cannot be obtained.
        """
        tree = index.tree
        fingerprint = ContentProcessor.fingerprint(passage.full_text)

        cached = index.cache.lookup(fingerprint)
        if cached is not None and cached.node_id in tree:
            tree.insert_prompt(cached.node_id, passage.index)
            tree.recount()
            logger.debug("Cache hit for prompt %d -> %s", passage.index, cached.node_id)
            return ClassifyResult(node_id=cached.node_id, confidence=cached.confidence, is_new_node=False)

        sentence_vector = await self._embed(passage.first_sentence)
        tree = index.tree

        topic_hit = best_match(
            sentence_vector,
            tree.child_candidates(TopicTree.ROOT_ID, NodeRank.TOPIC),
            self.thresholds.high,
        )

        if topic_hit is not None:
            sub_hit = best_match(
                sentence_vector,
                tree.child_candidates(topic_hit.node_id, NodeRank.SUBTOPIC),
                self.thresholds.high,
            )
            if sub_hit is not None:
                logger.debug("Prompt %d matched subtopic %s (%.3f)",
                             passage.index, sub_hit.node_id, sub_hit.score)
                return self._commit(index, fingerprint, sub_hit.node_id, sub_hit.score, False, passage.index)

            label = await self._label(passage.first_sentence, index)
            sub = index.tree.spawn_node(topic_hit.node_id, label, NodeRank.SUBTOPIC, sentence_vector)
            logger.info("New subtopic %r under %s for prompt %d", label, topic_hit.node_id, passage.index)
            return self._commit(index, fingerprint, sub.id, topic_hit.score, True, passage.index)

        if index.tree.has_topics:
            result = await self._escalate(index, fingerprint, passage)
            if result is not None:
                return result

        label = await self._label(passage.first_sentence, index)
        topic = index.tree.spawn_node(TopicTree.ROOT_ID, label, NodeRank.TOPIC, sentence_vector)
        logger.info("New topic %r for prompt %d", label, passage.index)
        return self._commit(index, fingerprint, topic.id, 0.0, True, passage.index)

    async def _escalate(
        self, index: ConversationIndex, fingerprint: str, passage: Passage
    ) -> Optional[ClassifyResult]:
        """Full-text scan of every embedded node at threshold_low."""
        try:
            full_vector = await self._embed(passage.full_text)
        except EmbeddingError as e:
            logger.warning("Full-text embedding failed for prompt %d, spawning a topic: %s",
                           passage.index, e)
            return None

        tree = index.tree
        hit = best_match(full_vector, tree.all_embedded_candidates(), self.thresholds.low)
        if hit is None:
            logger.debug("Escalation found nothing for prompt %d", passage.index)
            return None

        hit_rank = tree.require(hit.node_id).rank
        if hit_rank == NodeRank.TOPIC:
            label = await self._label(passage.first_sentence, index)
            sub = index.tree.spawn_node(hit.node_id, label, NodeRank.SUBTOPIC, full_vector)
            logger.info("New subtopic %r under %s via full-text scan for prompt %d",
                        label, hit.node_id, passage.index)
            return self._commit(index, fingerprint, sub.id, hit.score, True, passage.index)

        logger.debug("Prompt %d matched %s via full-text scan (%.3f)",
                     passage.index, hit.node_id, hit.score)
        return self._commit(index, fingerprint, hit.node_id, hit.score, False, passage.index)

    async def initialize_embeddings(self, index: ConversationIndex) -> int:
        """Re-embed every non-root node that has no vector, using its label.

        Run once after restoring a snapshot. Failures are logged and the node
        stays out of candidate sets. Returns the number of nodes embedded.
        """
        pending = [node.id for node in index.tree.nodes_missing_vectors()]
        embedded = 0

        for node_id in pending:
            node = index.tree.get(node_id)
            if node is None:
                continue
            label = node.label
            try:
                vector = await self._embed(label)
            except EmbeddingError as e:
                logger.warning("Could not re-embed node %s (%r): %s", node_id, label, e)
                continue
            if node_id in index.tree:
                index.tree.set_vector(node_id, vector)
                embedded += 1

        if pending:
            logger.info("Re-embedded %d of %d node(s) for conversation %s",
                        embedded, len(pending), index.conversation_id)
        return embedded

    def _commit(
        self,
        index: ConversationIndex,
        fingerprint: str,
        node_id: str,
        confidence: float,
        is_new_node: bool,
        prompt_index: int,
    ) -> ClassifyResult:
        index.tree.insert_prompt(node_id, prompt_index)
        index.tree.recount()
        index.cache.store(fingerprint, node_id, confidence)
        return ClassifyResult(node_id=node_id, confidence=confidence, is_new_node=is_new_node)

    async def _embed(self, text: str) -> np.ndarray:
        """Embed text within the timeout; any failure becomes EmbeddingError."""
        try:
            vector = await asyncio.wait_for(self.embedder.embed(text), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise EmbeddingError(f"Embedding timed out after {self.timeout}s") from e
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e

        try:
            vector = np.asarray(vector, dtype=np.float64).ravel()
        except (TypeError, ValueError) as e:
            raise EmbeddingError(f"Embedding returned non-numeric data: {e}") from e
        if vector.size == 0:
            raise EmbeddingError("Embedding returned an empty vector")
        return vector

    async def _label(self, text: str, index: ConversationIndex) -> str:
        """Generate a label, falling back to truncated text on any failure."""
        try:
            return await asyncio.wait_for(
                self.labeler.generate_label(text, index.tree.labels()),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Label generation timed out after %ss, using fallback", self.timeout)
        except LabelError as e:
            logger.warning("Label generation failed, using fallback: %s", e)
        except Exception as e:
            logger.warning("Label generator raised %s, using fallback: %s", type(e).__name__, e)
        return fallback_label(text)
