"""Re-entrant step queue.

A pipeline runs its steps in order. While a step is running it may queue more
work; queued steps run before the pipeline moves past the step that queued
them, and a step that itself owns a pipeline receives the work instead, so the
deepest running frame always expands first.
"""
from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterable, List, Optional, Protocol

from rules_timing.constants import MAX_PIPELINE_ITERATIONS
from rules_timing.errors import InvalidStateError

logger = logging.getLogger(__name__)


class Step(Protocol):
    """Interface implemented by anything a pipeline can run."""

    def continue_step(self) -> bool:
        """Advance the step; return False while it is waiting for input."""
        ...


class GamePipeline:
    def __init__(self, name: str = "pipeline") -> None:
        self.name = name
        self._steps: Deque[Step] = deque()
        self._queue: List[Step] = []
        self._initializing = False
        self._running = 0

    def __len__(self) -> int:
        return len(self._steps) + len(self._queue)

    @property
    def current_step(self) -> Optional[Step]:
        return self._steps[0] if self._steps else None

    def initialize(self, steps: Iterable[Step]) -> None:
        """Replace every pending step with ``steps``.

        Raises InvalidStateError if the pipeline is already being initialised
        or is in the middle of running one of its own steps.
        """
        if self._initializing or self._running:
            raise InvalidStateError(f"{self.name} re-initialised while in flight")
        self._initializing = True
        try:
            self._steps = deque(steps)
            self._queue = []
        finally:
            self._initializing = False
        logger.debug("%s initialised with %d steps", self.name, len(self._steps))

    def queue_step(self, step: Step) -> None:
        """Queue ``step`` to run before the remaining pending steps."""
        if self._initializing:
            raise InvalidStateError(f"{self.name} queued into while initialising")
        if not self._steps:
            self._steps.appendleft(step)
            return
        current = self._steps[0]
        nested_queue = getattr(current, "queue_step", None)
        if nested_queue is not None:
            nested_queue(step)
        else:
            self._queue.append(step)

    def clear(self) -> None:
        self._steps.clear()
        self._queue.clear()

    def continue_processing(self) -> bool:
        """Run steps until drained (True) or a step waits for input (False)."""
        if self._initializing:
            raise InvalidStateError(f"{self.name} continued while initialising")
        self._merge_queue()
        self._running += 1
        try:
            iterations = 0
            while self._steps:
                iterations += 1
                if iterations > MAX_PIPELINE_ITERATIONS:
                    raise InvalidStateError(
                        f"{self.name} exceeded {MAX_PIPELINE_ITERATIONS} steps in one pass"
                    )
                step = self._steps[0]
                try:
                    waiting = step.continue_step() is False
                except Exception:
                    # A faulted step never resumes, nor does anything it queued.
                    logger.debug("%s dropping faulted step %r", self.name, step)
                    if self._steps and self._steps[0] is step:
                        self._steps.popleft()
                    self._queue = []
                    raise
                if waiting:
                    if not self._queue:
                        return False
                else:
                    self._steps.popleft()
                self._merge_queue()
            return True
        finally:
            self._running -= 1

    def _merge_queue(self) -> None:
        if self._queue:
            self._steps.extendleft(reversed(self._queue))
            self._queue = []
