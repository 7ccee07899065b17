"""
Batch Scheduler

Runs an ordered chunk list through the RetryingTranslator in fixed-size
windows. All chunks of a window are in flight together; the next window
starts only once the current one has fully settled, so peak outbound
concurrency equals the window size. Results are written by chunk index, so
output order never depends on completion order.
"""

from __future__ import annotations

# Standard library
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

# Local application
from translation.assembler import assemble
from translation.chunker import Chunk
from translation.errors import TranslationSuperseded
from translation.retry import RetryingTranslator, UnitResult

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 3


class RequestGeneration:
    """
    Monotonic counter identifying the current request.

    Starting a new request calls ``advance()``; work tagged with an older
    value is stale and its output must not be published.
    """

    def __init__(self) -> None:
        self._value = 0

    @property
    def current(self) -> int:
        return self._value

    def advance(self) -> int:
        self._value += 1
        return self._value

    def is_current(self, token: int) -> bool:
        return token == self._value

    def ensure_current(self, token: int) -> None:
        if token != self._value:
            raise TranslationSuperseded(token, self._value)


@dataclass(frozen=True)
class BatchProgress:
    """Snapshot published after every settled window."""

    completed: int
    total: int
    partial_text: str
    fallback_count: int = 0

    @property
    def fraction(self) -> float:
        return self.completed / self.total if self.total else 1.0


@dataclass
class BatchResult:
    """Ordered per-chunk output of one language run."""

    texts: List[str]
    units: List[UnitResult] = field(default_factory=list)

    @property
    def failed_indices(self) -> List[int]:
        return [unit.chunk_index for unit in self.units if not unit.ok]

    @property
    def fallback_count(self) -> int:
        return len(self.failed_indices)

    @property
    def all_failed(self) -> bool:
        return bool(self.units) and self.fallback_count == len(self.units)

    def last_error(self) -> Optional[str]:
        for unit in reversed(self.units):
            if not unit.ok:
                return unit.error
        return None


ProgressCallback = Callable[[BatchProgress], None]


class BatchScheduler:
    """Windowed, order-preserving chunk translation."""

    def __init__(
        self,
        translator: RetryingTranslator,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.translator = translator
        self.concurrency = concurrency

    async def translate_all(
        self,
        chunks: Sequence[Chunk],
        source_lang: str,
        target_lang: str,
        *,
        concurrency: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None,
        generation: Optional[RequestGeneration] = None,
        token: Optional[int] = None,
    ) -> BatchResult:
        """
        Translates every chunk into ``target_lang``.

        Args:
            chunks: Ordered chunks from the chunker.
            source_lang: Source code or AUTO.
            target_lang: Target code.
            concurrency: Window size override.
            on_progress: Called after each window with completed/total counts
                and the text assembled so far.
            generation: Shared request counter; with ``token`` it lets a newer
                request supersede this run at the next window boundary.
            token: Generation value this run belongs to.

        Returns:
            BatchResult whose ``texts`` hold translations (or fallback
            phrases) in chunk order.

        Raises:
            TranslationSuperseded: When the generation moved on.
        """
        window = concurrency or self.concurrency
        total = len(chunks)
        slots: List[Optional[str]] = [None] * total
        units: List[Optional[UnitResult]] = [None] * total
        separators = [chunk.separator for chunk in chunks]
        position = {chunk.index: i for i, chunk in enumerate(chunks)}
        fallback_text = self.translator.fallback_for(target_lang) if total else ""
        completed = 0

        for offset in range(0, total, window):
            if generation is not None and token is not None:
                generation.ensure_current(token)

            batch = chunks[offset:offset + window]
            results = await asyncio.gather(
                *(
                    self.translator.translate_unit(chunk, source_lang, target_lang)
                    for chunk in batch
                )
            )

            if generation is not None and token is not None:
                generation.ensure_current(token)

            for unit in results:
                slot = position[unit.chunk_index]
                units[slot] = unit
                slots[slot] = unit.text if unit.ok else fallback_text
            completed += len(batch)

            if on_progress is not None:
                done = list(slots[:completed])
                on_progress(
                    BatchProgress(
                        completed=completed,
                        total=total,
                        partial_text=assemble(done, separators[:completed]),
                        fallback_count=sum(1 for u in units[:completed] if u and not u.ok),
                    )
                )

            logger.debug(
                f"Window {offset // window + 1} done: {completed}/{total} chunks -> {target_lang}"
            )

        return BatchResult(texts=list(slots), units=list(units))
