"""Ordered, fail-fast step pipeline.

A pipeline is a flat list of ``Step`` objects, any of which may carry nested
child steps.  ``Pipeline.run`` executes them strictly in declaration order:

* a step whose skip predicate yields a truthy value is marked ``SKIPPED``
  (a string result is reported as the reason) and its action is not called;
* otherwise the step runs and ends ``SUCCEEDED`` or ``FAILED``;
* after the first failure every remaining step, at every nesting level, is
  marked ``ABORTED`` without evaluating its predicate.

A group step (one with children) succeeds only if all of its children
succeed or are skipped.  Nothing is retried and nothing is rolled back.

Usage::

    steps = [Step("Say hello", action=say_hello)]
    result = await Pipeline(steps, config).run()
    if not result.success:
        print(result.failed_step, result.error)
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from create_grandstack_app.config import Configuration

TITLE_SEPARATOR = " > "

SkipPredicate = Callable[[Configuration], bool | str | None]
Action = Callable[[], Awaitable[Any]]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class StepError(Exception):
    """Raised (and captured) when a step's action fails.

    ``title`` is the full title path of the failing step, with nested titles
    joined by ``" > "``.  The original exception is chained as ``__cause__``.
    """

    def __init__(self, title: str, cause: BaseException) -> None:
        self.title = title
        self.cause = cause
        super().__init__(f"{title}: {cause}")


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


class StepState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SKIPPED = "skipped"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"


@dataclass
class Step:
    """One unit of work.

    Attributes:
        title: Text shown to the operator.
        action: Coroutine function invoked when the step runs.  Ignored for
            group steps.
        skip: Optional predicate over the run's ``Configuration``.  ``True``
            or a non-empty string skips the step; the string is the reason.
        children: Nested steps run as a single unit.
    """

    title: str
    action: Action | None = None
    skip: SkipPredicate | None = None
    children: list["Step"] = field(default_factory=list)

    @property
    def is_group(self) -> bool:
        return bool(self.children)


@dataclass
class StepRecord:
    """Outcome of one step in a run."""

    path: tuple[str, ...]
    state: StepState = StepState.PENDING
    reason: str | None = None
    error: StepError | None = None
    duration: float = 0.0
    group: bool = False

    @property
    def title(self) -> str:
        return self.path[-1]

    @property
    def full_title(self) -> str:
        return TITLE_SEPARATOR.join(self.path)

    @property
    def depth(self) -> int:
        return len(self.path) - 1


@dataclass
class RunResult:
    """Result of a pipeline run: success, or the single captured failure."""

    records: list[StepRecord] = field(default_factory=list)
    error: StepError | None = None
    duration: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def failed_step(self) -> str | None:
        """Title path of the step that failed, if any."""
        return self.error.title if self.error else None

    def record(self, *path: str) -> StepRecord:
        """Return the record for the step at *path*.

        Raises:
            KeyError: If no step with that title path was part of the run.
        """
        for rec in self.records:
            if rec.path == path:
                return rec
        raise KeyError(TITLE_SEPARATOR.join(path))

    def states(self) -> dict[str, StepState]:
        """Return ``{full_title: state}`` for every step."""
        return {rec.full_title: rec.state for rec in self.records}


class PipelineObserver(Protocol):
    """Receives step transitions from the runner."""

    def on_start(self, record: StepRecord) -> None: ...

    def on_finish(self, record: StepRecord) -> None: ...


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


class Pipeline:
    """Runs a list of steps once, in order, stopping at the first failure.

    Attributes:
        steps: The top-level steps, in execution order.
        config: The configuration skip predicates are evaluated against.
        observer: Optional listener notified of every step transition.
    """

    def __init__(
        self,
        steps: Sequence[Step],
        config: Configuration,
        observer: PipelineObserver | None = None,
    ) -> None:
        self.steps = list(steps)
        self.config = config
        self.observer = observer
        self._has_run = False

    async def run(self) -> RunResult:
        """Execute the pipeline.

        Returns:
            A ``RunResult``; failures are captured in it rather than raised.

        Raises:
            RuntimeError: If the pipeline has already been run.
        """
        if self._has_run:
            raise RuntimeError("Pipeline has already been run")
        self._has_run = True

        started = time.monotonic()
        result = RunResult()
        result.error = await self._run_steps(self.steps, (), result.records)
        result.duration = time.monotonic() - started
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _run_steps(
        self,
        steps: Sequence[Step],
        parent: tuple[str, ...],
        records: list[StepRecord],
    ) -> StepError | None:
        for index, step in enumerate(steps):
            record = StepRecord(path=parent + (step.title,), group=step.is_group)
            records.append(record)

            error: StepError | None = None
            try:
                skip_result = step.skip(self.config) if step.skip else None
            except Exception as exc:  # noqa: BLE001
                error = _wrap(record, exc)
                skip_result = None

            if error is None and skip_result:
                record.state = StepState.SKIPPED
                if isinstance(skip_result, str):
                    record.reason = skip_result
                self._finish(record)
                continue

            record.state = StepState.RUNNING
            self._start(record)
            started = time.monotonic()

            if error is None:
                if step.is_group:
                    error = await self._run_steps(step.children, record.path, records)
                else:
                    error = await self._invoke(step, record)

            record.duration = time.monotonic() - started

            if error is not None:
                record.state = StepState.FAILED
                record.error = error
                self._finish(record)
                self._abort(steps[index + 1:], parent, records)
                return error

            record.state = StepState.SUCCEEDED
            self._finish(record)

        return None

    async def _invoke(self, step: Step, record: StepRecord) -> StepError | None:
        if step.action is None:
            return None
        try:
            await step.action()
        except (KeyboardInterrupt, asyncio.CancelledError):
            raise
        except Exception as exc:  # noqa: BLE001
            return _wrap(record, exc)
        return None

    def _abort(
        self,
        steps: Sequence[Step],
        parent: tuple[str, ...],
        records: list[StepRecord],
    ) -> None:
        for step in steps:
            record = StepRecord(
                path=parent + (step.title,), state=StepState.ABORTED, group=step.is_group
            )
            records.append(record)
            self._finish(record)
            if step.is_group:
                self._abort(step.children, record.path, records)

    def _start(self, record: StepRecord) -> None:
        if self.observer is not None:
            self.observer.on_start(record)

    def _finish(self, record: StepRecord) -> None:
        if self.observer is not None:
            self.observer.on_finish(record)


def _wrap(record: StepRecord, exc: Exception) -> StepError:
    error = StepError(record.full_title, exc)
    error.__cause__ = exc
    return error
