"""Inactivity timer rules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import EXTEND_SECONDS, I64_MAX, I64_MIN, START_AFTER
from ..errors import ErrorCode, SpecError


class TimerActionKind(Enum):
    NONE = "none"
    ARMED = "armed"
    EXTENDED = "extended"


@dataclass(frozen=True)
class TimerAction:
    kind: TimerActionKind
    new_deadline: Optional[int] = None

    @classmethod
    def none(cls) -> "TimerAction":
        return cls(TimerActionKind.NONE)


def _deadline_from(now: int, extend_seconds: int) -> int:
    deadline = now + extend_seconds
    if deadline < I64_MIN or deadline > I64_MAX:
        raise SpecError(ErrorCode.ARITHMETIC_OVERFLOW, "deadline overflow")
    return deadline


def evaluate_timer(
    messages_count: int,
    timer_active: bool,
    deadline: int,
    now: int,
    start_after: int = START_AFTER,
    extend_seconds: int = EXTEND_SECONDS,
) -> TimerAction:
    """Decide whether a just-counted message arms, extends or leaves the timer.

    ``messages_count`` is the count *after* the current message. An active
    timer that has already expired is left as is; it is never resurrected.
    """
    if not timer_active and messages_count >= start_after:
        return TimerAction(TimerActionKind.ARMED, _deadline_from(now, extend_seconds))
    if timer_active and now <= deadline:
        return TimerAction(TimerActionKind.EXTENDED, _deadline_from(now, extend_seconds))
    return TimerAction.none()
