"""
Ingestion queue: feeds passages to the classification pipeline one at a time.
"""
import asyncio
import inspect
from typing import Awaitable, Callable, Iterable, List, Optional, Union

from .content_processor import ContentProcessor
from .conversation import ConversationIndex
from .logging_config import get_logger
from .models import IngestionOutcome, Passage, PromptRecord
from .pipeline import ClassificationPipeline

logger = get_logger("ingestion")

PlacementCallback = Callable[[ConversationIndex, IngestionOutcome], Union[None, Awaitable[None]]]


class IngestionQueue:
    """Single-consumer queue in front of ClassificationPipeline.

    Passages are classified strictly in submission order and each one
    finishes (store mutation and recount included) before the next starts.
    submit() only enqueues, so callers arriving mid-classification wait
    their turn instead of running inline.

    Usage::

        async with IngestionQueue(pipeline, index, on_placement=store_cb) as queue:
            queue.submit_many(passages)
            await queue.drain()
    """

    def __init__(
        self,
        pipeline: ClassificationPipeline,
        index: ConversationIndex,
        on_placement: Optional[PlacementCallback] = None,
    ):
        self.pipeline = pipeline
        self.index = index
        self.on_placement = on_placement
        self.results: List[IngestionOutcome] = []
        self.failures: List[IngestionOutcome] = []
        self.skipped: List[IngestionOutcome] = []
        self._queue: asyncio.Queue = asyncio.Queue()
        self._worker: Optional[asyncio.Task] = None

    async def __aenter__(self) -> "IngestionQueue":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            await self.drain()
        await self.close()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        """Start the worker task if it is not running. Needs a running event loop."""
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._worker_loop())

    def submit(self, passage: Passage) -> None:
        """Append a passage to the tail of the queue."""
        self._queue.put_nowait(passage)
        self.start()

    def submit_many(self, passages: Iterable[Passage]) -> None:
        for passage in passages:
            self.submit(passage)

    async def drain(self) -> None:
        """Wait until every submitted passage has been processed."""
        if self._queue.empty() and (self._worker is None or self._worker.done()):
            return
        self.start()
        await self._queue.join()

    async def close(self) -> None:
        """Stop the worker after it finishes the current passage."""
        if self._worker is None or self._worker.done():
            self._worker = None
            return
        await self._queue.put(None)
        await self._worker
        self._worker = None

    async def _worker_loop(self) -> None:
        while True:
            passage = await self._queue.get()
            if passage is None:  # Sentinel value to terminate
                self._queue.task_done()
                break
            try:
                await self._process(passage)
            except Exception:
                logger.exception("Unexpected error while ingesting prompt %s", passage.index)
            finally:
                self._queue.task_done()

    async def _process(self, passage: Passage) -> IngestionOutcome:
        if self.index.has_prompt(passage.index):
            logger.debug("Prompt %d already recorded, skipping", passage.index)
            outcome = IngestionOutcome(passage=passage, skipped=True)
            self.skipped.append(outcome)
            return outcome

        record = PromptRecord(
            index=passage.index,
            full_text=passage.full_text,
            first_sentence=passage.first_sentence,
            hash=ContentProcessor.fingerprint(passage.full_text),
        )
        self.index.add_prompt(record)

        try:
            result = await self.pipeline.classify(self.index, passage)
        except Exception as e:
            # Roll back so the passage is offered again on the next scan.
            self.index.remove_prompt(passage.index)
            logger.error("Classification failed for prompt %d: %s", passage.index, e)
            outcome = IngestionOutcome(passage=passage, error=e)
            self.failures.append(outcome)
            return outcome

        outcome = IngestionOutcome(passage=passage, result=result)
        self.results.append(outcome)
        logger.debug("Prompt %d -> %s (confidence %.3f, new=%s)",
                     passage.index, result.node_id, result.confidence, result.is_new_node)
        await self._notify(outcome)
        return outcome

    async def _notify(self, outcome: IngestionOutcome) -> None:
        if self.on_placement is None:
            return
        try:
            maybe_awaitable = self.on_placement(self.index, outcome)
            if inspect.isawaitable(maybe_awaitable):
                await maybe_awaitable
        except Exception:
            logger.exception("Placement callback failed for prompt %d", outcome.passage.index)
