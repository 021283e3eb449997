"""Task and result data contracts shared by dispatchers and models.

Architectural role:
    Defines the tagged outcome type every dispatch produces and the queued
    task record a `ModelProxy` accumulates before a combinator drains it.

Control-flow interaction:
    `Dispatcher.execute` returns a `Success` or `Failure`. Combinators apply
    the task's `transform` to a success value; a transform that returns a
    `Failure` turns that success into a rejection.

Determinism:
    The data classes are purely structural and state-free.
"""

from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass(frozen=True)
class Success:
    """Settled successful dispatch.

    Attributes:
        value: Parsed body, decoded text, raw bytes or mock fixture.
        set_cookie: `set-cookie` header values from a live response, if any.
    """

    value: Any = None
    set_cookie: list[str] | None = None


@dataclass(frozen=True)
class Failure:
    """Settled failed dispatch carrying the error that caused it."""

    error: BaseException


Result = Success | Failure


@dataclass
class RequestTask:
    """One queued, not yet executed interface call.

    Attributes:
        params: Request params, or a callable `(previous, results) -> params`
            evaluated by `series`.
        dispatcher: Dispatcher bound to the target interface.
        transform: Optional callback applied to the success value.
    """

    params: Any
    dispatcher: Any
    transform: Callable[[Any], Any] | None = None

    @property
    def interface_id(self) -> str:
        return self.dispatcher.interface_id


def apply_transform(task: RequestTask, value: Any) -> Result:
    """Run a task's transform over a success value.

    Returns:
        `Success` with the transformed value, or `Failure` when the transform
        returned a `Failure` or an exception instance, or raised.
    """
    if task.transform is None:
        return Success(value)
    try:
        transformed = task.transform(value)
    except Exception as exc:
        return Failure(exc)
    if isinstance(transformed, Failure):
        return transformed
    if isinstance(transformed, BaseException):
        return Failure(transformed)
    if isinstance(transformed, Success):
        return transformed
    return Success(transformed)


@dataclass
class OrchestrationQueue:
    """Pending tasks plus the cookie context they will be sent with."""

    tasks: list[RequestTask] = field(default_factory=list)
    cookie: str | None = None

    def drain(self) -> tuple[list[RequestTask], str | None]:
        """Return and clear the tasks and cookie in one step."""
        tasks, cookie = self.tasks, self.cookie
        self.tasks = []
        self.cookie = None
        return tasks, cookie
