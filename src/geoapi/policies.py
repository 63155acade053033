import random
import time
from dataclasses import dataclass
from typing import Callable, Union

from .errors import FailureVerdict
from .state import RetryState
from .types import RetryConfig


@dataclass(frozen=True)
class Stop:
    error: BaseException


@dataclass(frozen=True)
class RetryAfter:
    delay: float


Decision = Union[Stop, RetryAfter]


class RetryPolicy:
    """Decides whether a failed attempt is retried, and after how long."""

    def should_retry(self, state: RetryState, verdict: FailureVerdict) -> Decision:
        raise NotImplementedError


class NoRetryPolicy(RetryPolicy):
    def should_retry(self, state: RetryState, verdict: FailureVerdict) -> Decision:
        return Stop(verdict.error)


class ExponentialBackoffPolicy(RetryPolicy):
    def __init__(
        self,
        config: Union[RetryConfig, None] = None,
        clock: Callable[[], float] = time.monotonic,
        rng: Callable[[], float] = random.random,
    ):
        self.config = config or RetryConfig()
        self._clock = clock
        self._rng = rng

    def should_retry(self, state: RetryState, verdict: FailureVerdict) -> Decision:
        cfg = self.config
        if not verdict.retryable or cfg.disable_retries:
            return Stop(verdict.error)
        if cfg.max_retries is not None and state.retries >= cfg.max_retries:
            return Stop(verdict.error)
        if cfg.retry_timeout is not None and state.elapsed(self._clock()) >= cfg.retry_timeout:
            return Stop(verdict.error)
        return RetryAfter(self.delay_for(state.retries))

    def delay_for(self, retries: int) -> float:
        cfg = self.config
        # Cap the exponent as well so large retry counts cannot overflow.
        delay = min(cfg.backoff_cap, cfg.backoff_base * (cfg.backoff_growth ** min(32, retries)))
        return delay * (1.0 + cfg.jitter * self._rng())


class FunctionalRetryPolicy(RetryPolicy):
    """Wrap a user-supplied function into a RetryPolicy.

    Accepted function signature:
        - fn(state, verdict) -> float | None

    A float is the delay before the next attempt; None stops with the verdict's error.
    Terminal verdicts never reach the function.
    """

    def __init__(self, fn: Callable):
        self.fn = fn

    def should_retry(self, state: RetryState, verdict: FailureVerdict) -> Decision:
        if not verdict.retryable:
            return Stop(verdict.error)
        delay = self.fn(state, verdict)
        if delay is None:
            return Stop(verdict.error)
        if delay < 0:
            raise ValueError("Custom retry function returned a negative delay")
        return RetryAfter(float(delay))


def coerce_policy(
    policy: Union[object, None],
    config: Union[RetryConfig, None] = None,
    clock: Callable[[], float] = time.monotonic,
) -> RetryPolicy:
    """Turn None | str | RetryPolicy | callable into a RetryPolicy.

    Accepted inputs:
      - None           -> ExponentialBackoffPolicy (NoRetryPolicy if config disables retries)
      - "exponential" -> ExponentialBackoffPolicy
      - "none"        -> NoRetryPolicy
      - RetryPolicy instance (returned as-is)
      - callable fn(state, verdict) -> delay | None, wrapped into FunctionalRetryPolicy
    """
    if policy is None:
        if config is not None and config.disable_retries:
            return NoRetryPolicy()
        return ExponentialBackoffPolicy(config, clock=clock)
    if isinstance(policy, RetryPolicy):
        return policy
    if isinstance(policy, str):
        name = policy.lower()
        if name == "exponential":
            return ExponentialBackoffPolicy(config, clock=clock)
        if name == "none":
            return NoRetryPolicy()
        raise ValueError(
            "Unknown policy string. Use 'exponential' or 'none', or pass a callable/RetryPolicy."
        )
    if callable(policy):
        return FunctionalRetryPolicy(policy)
    raise TypeError("policy must be None, 'exponential'|'none', RetryPolicy, or a callable")
