from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Optional

from rules_timing.pipeline.pipeline import GamePipeline

if TYPE_CHECKING:
    from rules_timing.game import Game


class BaseStep:
    """Leaf unit of work. Subclasses override ``continue_step``."""

    def __init__(self, game: "Game") -> None:
        self.game = game

    @property
    def name(self) -> str:
        return type(self).__name__

    def continue_step(self) -> bool:
        return True


class SimpleStep(BaseStep):
    """Runs a callable once and completes."""

    def __init__(self, game: "Game", handler: Callable[[], Any], name: Optional[str] = None) -> None:
        super().__init__(game)
        self.handler = handler
        self._name = name

    @property
    def name(self) -> str:
        return self._name or getattr(self.handler, "__name__", "SimpleStep")

    def continue_step(self) -> bool:
        self.handler()
        return True

    def __repr__(self) -> str:
        return f"<SimpleStep {self.name}>"


class BaseStepWithPipeline(BaseStep):
    """A step that owns a pipeline; work queued while it runs lands inside it."""

    def __init__(self, game: "Game") -> None:
        super().__init__(game)
        self.pipeline = GamePipeline(name=type(self).__name__)

    def queue_step(self, step: BaseStep) -> None:
        self.pipeline.queue_step(step)

    def continue_step(self) -> bool:
        return self.pipeline.continue_processing()
