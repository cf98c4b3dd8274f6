"""Run independent writes concurrently and collect every outcome.

Each task yields either :class:`Ok` or :class:`Failure`; one failing write never
prevents the others from running, and nothing is retried.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, Sequence, TypeVar, Union

from ..core.constants import DEFAULT_IMPORT_MAX_WORKERS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Failure:
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


Outcome = Union[Ok[Any], Failure]


@dataclass(frozen=True)
class WriteTask(Generic[T]):
    key: Any
    label: str
    run: Callable[[], T]


@dataclass(frozen=True)
class Settled:
    task: WriteTask
    outcome: Outcome

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Ok)


def _attempt(task: WriteTask) -> Outcome:
    try:
        return Ok(task.run())
    except Exception as e:
        logger.warning("%s failed: %s", task.label, e)
        return Failure(e)


def settle_all(tasks: Sequence[WriteTask], *, max_workers: int = DEFAULT_IMPORT_MAX_WORKERS) -> list[Settled]:
    """Execute all tasks and block until every one has settled.

    Results are returned in task order.
    """

    if not tasks:
        return []

    workers = max(1, min(int(max_workers), len(tasks)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="hr-write") as pool:
        outcomes = list(pool.map(_attempt, tasks))
    return [Settled(task=t, outcome=o) for t, o in zip(tasks, outcomes)]
