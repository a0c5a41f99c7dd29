"""
Bounded polling of long-running external jobs (transcription, rendering).
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger("narrator")


class JobState(str, Enum):
    SUBMITTED = "submitted"
    POLLING = "polling"
    DONE = "done"
    FAILED = "failed"
    TIMED_OUT = "timed-out"

    @property
    def terminal(self) -> bool:
        return self in (JobState.DONE, JobState.FAILED, JobState.TIMED_OUT)


@dataclass(frozen=True)
class PollPolicy:
    """Fixed interval, fixed attempt budget (default: 10 s x 60 = 10 minutes)."""

    interval_secs: float = 10.0
    max_attempts: int = 60


@dataclass
class PollOutcome:
    state: JobState
    payload: Any
    attempts: int


def poll_job(
    fetch: Callable[[], Any],
    classify: Callable[[Any], JobState],
    policy: PollPolicy | None = None,
    *,
    label: str = "job",
    sleep: Callable[[float], None] = time.sleep,
) -> PollOutcome:
    """
    Poll ``fetch`` until ``classify`` reports a terminal state or the budget runs out.

    The job starts in ``submitted``; every fetch moves it to whatever ``classify``
    returns (``polling`` while the vendor is still working). Exhausting
    ``max_attempts`` ends in ``timed-out`` with the last payload; it is never
    retried here.
    """
    policy = policy or PollPolicy()
    state = JobState.SUBMITTED
    payload: Any = None
    attempts = 0

    while attempts < policy.max_attempts:
        sleep(policy.interval_secs)
        payload = fetch()
        attempts += 1
        state = classify(payload)
        logger.info("%s status: %s (attempt %d/%d)", label, state.value, attempts, policy.max_attempts)
        if state.terminal:
            return PollOutcome(state=state, payload=payload, attempts=attempts)

    logger.error("%s did not finish after %d attempts", label, attempts)
    return PollOutcome(state=JobState.TIMED_OUT, payload=payload, attempts=attempts)
