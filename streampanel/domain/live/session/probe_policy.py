"""Bounded fixed-interval retry policy for manifest probing.

Pure functions only: the acquisition controller asks what to do next and
performs the wait itself, which keeps the policy testable without timers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ProbeAction(str, Enum):
    PROBE = "probe"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class ProbeStep:
    action: ProbeAction
    delay_ms: int = 0


def plan_next_probe(
    attempt: int,
    max_attempts: int,
    interval_ms: int,
    cancelled: bool = False,
) -> ProbeStep:
    """Decide the step after `attempt` probes have been made.

    The first probe follows the warm-up immediately; every later one waits
    `interval_ms`. No wait is scheduled after the last attempt.
    """
    if cancelled:
        return ProbeStep(ProbeAction.CANCELLED)
    if attempt >= max_attempts:
        return ProbeStep(ProbeAction.EXHAUSTED)
    if attempt == 0:
        return ProbeStep(ProbeAction.PROBE, 0)
    return ProbeStep(ProbeAction.PROBE, interval_ms)


def acquisition_timeout_ms(warmup_ms: int, interval_ms: int, max_attempts: int) -> int:
    """Total wait before a never-ready manifest is declared failed."""
    return warmup_ms + interval_ms * (max_attempts - 1)
