"""Poll health state and escalation rules.

PollState is the one piece of shared mutable state: the poller writes
it, the health monitor reads it. Scheduler jobs run on separate threads,
so every access goes through a lock. evaluate_health() is a pure
function over a snapshot.
"""

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta


@dataclass(frozen=True)
class PollStateSnapshot:
    """Point-in-time copy of PollState."""
    last_successful_check: datetime
    consecutive_failures: int
    started_at: datetime


@dataclass
class PollState:
    """Success/failure history of the alert poller.

    Attributes:
        last_successful_check: End of the last cycle that had no errors
        consecutive_failures: Failed cycles (and failed probes) since then
        started_at: Process start, for uptime reporting
    """
    last_successful_check: datetime
    started_at: datetime
    consecutive_failures: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @classmethod
    def starting_at(cls, now: datetime) -> "PollState":
        return cls(last_successful_check=now, started_at=now)

    def record_success(self, now: datetime) -> None:
        with self._lock:
            self.last_successful_check = now
            self.consecutive_failures = 0

    def record_failure(self) -> int:
        """Count one failure and return the new total."""
        with self._lock:
            self.consecutive_failures += 1
            return self.consecutive_failures

    def snapshot(self) -> PollStateSnapshot:
        with self._lock:
            return PollStateSnapshot(
                last_successful_check=self.last_successful_check,
                consecutive_failures=self.consecutive_failures,
                started_at=self.started_at,
            )


@dataclass(frozen=True)
class HealthReport:
    """Result of one health evaluation.

    Attributes:
        reasons: Escalation reasons; empty when healthy
        consecutive_failures: Failure count at evaluation time
        seconds_since_success: Age of the last successful cycle
        uptime_minutes: Minutes since process start
        connection_ok: Result of the delivery platform probe (None if not run)
    """
    reasons: tuple[str, ...]
    consecutive_failures: int
    seconds_since_success: float
    uptime_minutes: int
    connection_ok: bool | None = None

    @property
    def healthy(self) -> bool:
        return not self.reasons


REASON_CONSECUTIVE_FAILURES = "Multiple consecutive failures detected"
REASON_STALE = "Alert monitoring has been offline too long"


def evaluate_health(
    snapshot: PollStateSnapshot,
    now: datetime,
    poll_interval: timedelta,
    max_failures: int = 3,
) -> HealthReport:
    """Decide whether the poller needs a critical escalation.

    Pure function. Two independent triggers:
    - consecutive failures at or above max_failures
    - last success older than twice the poll interval

    Args:
        snapshot: Current poll state
        now: Current time
        poll_interval: Configured poll period
        max_failures: Failure threshold

    Returns:
        HealthReport listing every trigger that fired
    """
    reasons = []
    since_success = now - snapshot.last_successful_check

    if snapshot.consecutive_failures >= max_failures:
        reasons.append(REASON_CONSECUTIVE_FAILURES)

    if since_success > poll_interval * 2:
        reasons.append(REASON_STALE)

    return HealthReport(
        reasons=tuple(reasons),
        consecutive_failures=snapshot.consecutive_failures,
        seconds_since_success=since_success.total_seconds(),
        uptime_minutes=int((now - snapshot.started_at).total_seconds() // 60),
    )
