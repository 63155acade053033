from dataclasses import dataclass

from .errors import FailureVerdict


@dataclass
class RetryState:
    attempts: int = 0
    first_attempt_at: float | None = None
    last_error: BaseException | None = None
    last_verdict: FailureVerdict | None = None

    @property
    def retries(self) -> int:
        return max(0, self.attempts - 1)

    def record_attempt(self, now: float) -> None:
        if self.first_attempt_at is None:
            self.first_attempt_at = now
        self.attempts += 1

    def record_failure(self, verdict: FailureVerdict) -> None:
        self.last_verdict = verdict
        self.last_error = verdict.error

    def elapsed(self, now: float) -> float:
        if self.first_attempt_at is None:
            return 0.0
        return max(0.0, now - self.first_attempt_at)
