#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Retry logic for agent calls.

Failed attempts are classified from their error text. Only transient
classes (timeouts, network failures, rate limits, 5xx-style errors) are
retried, with capped exponential backoff and jitter between attempts.
"""

import asyncio
import random
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Tuple

from foreman.agents.base import AgentResult
from foreman.config import VerificationPolicy
from foreman.debug_logger import get_logger


logger = get_logger()


class ErrorClass(Enum):
    """Categories of agent failures."""
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    NETWORK_ERROR = "network_error"
    SERVER_ERROR = "server_error"
    AUTH_ERROR = "auth_error"
    INVALID_REQUEST = "invalid_request"
    NO_AGENT = "no_agent"
    UNKNOWN = "unknown"

    @property
    def is_transient(self) -> bool:
        return self in _TRANSIENT_CLASSES


_TRANSIENT_CLASSES = {
    ErrorClass.RATE_LIMIT,
    ErrorClass.TIMEOUT,
    ErrorClass.NETWORK_ERROR,
    ErrorClass.SERVER_ERROR,
}

_CLASS_PATTERNS: List[Tuple[ErrorClass, re.Pattern]] = [
    (ErrorClass.NO_AGENT, re.compile(r"no (ai )?agents? available", re.I)),
    (ErrorClass.TIMEOUT, re.compile(r"timeout|timed out|ETIMEDOUT", re.I)),
    (ErrorClass.NETWORK_ERROR, re.compile(
        r"ECONNRESET|ECONNREFUSED|ENETUNREACH|network|socket hang up|"
        r"connection (reset|refused|closed)",
        re.I,
    )),
    (ErrorClass.RATE_LIMIT, re.compile(r"rate.?limit|too many requests|\b429\b", re.I)),
    (ErrorClass.SERVER_ERROR, re.compile(
        r"\b50[234]\b|temporarily unavailable|overloaded|capacity",
        re.I,
    )),
    (ErrorClass.AUTH_ERROR, re.compile(
        r"unauthori[sz]ed|authentication|forbidden|invalid api key|\b40[13]\b",
        re.I,
    )),
    (ErrorClass.INVALID_REQUEST, re.compile(r"invalid request|bad request|malformed|\b400\b", re.I)),
]


def classify_error(message: Optional[str]) -> ErrorClass:
    """Classify an agent error message.

    Args:
        message: Error text reported by the gateway

    Returns:
        The first matching ErrorClass, or UNKNOWN
    """
    if not message:
        return ErrorClass.UNKNOWN
    for error_class, pattern in _CLASS_PATTERNS:
        if pattern.search(message):
            return error_class
    return ErrorClass.UNKNOWN


def is_transient_error(message: Optional[str]) -> bool:
    return classify_error(message).is_transient


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 10.0  # seconds
    jitter: float = 0.1  # +/- fraction applied to each delay

    @classmethod
    def from_policy(cls, policy: VerificationPolicy) -> "RetryConfig":
        return cls(
            max_attempts=policy.retry_max_attempts,
            base_delay=policy.retry_base_delay,
            max_delay=policy.retry_max_delay,
            jitter=policy.retry_jitter,
        )


@dataclass
class RetryState:
    """Progress of one retried operation (never persisted)."""
    attempt: int = 0
    max_attempts: int = 3
    last_error: Optional[str] = None
    agent_used: Optional[str] = None
    delays: List[float] = field(default_factory=list)


class RetryHandler:
    """Runs an agent call with exponential backoff on transient failures."""

    def __init__(
        self,
        config: Optional[RetryConfig] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        """Initialize retry handler.

        Args:
            config: Retry configuration
            sleep: Coroutine used to wait between attempts
            rng: Random source for jitter
        """
        self.config = config or RetryConfig()
        self._sleep = sleep
        self._rng = rng or random.Random()

    def get_base_delay(self, attempt: int) -> float:
        """Capped exponential delay before jitter, for a 1-indexed attempt."""
        delay = self.config.base_delay * (2 ** (attempt - 1))
        return min(delay, self.config.max_delay)

    def get_backoff_delay(self, attempt: int) -> float:
        """Calculate the delay to wait after a failed attempt.

        Args:
            attempt: The attempt that just failed (1-indexed)

        Returns:
            Delay in seconds
        """
        # Jitter applies to the uncapped delay; the cap is applied last
        delay = self.config.base_delay * (2 ** min(attempt - 1, 62))
        if self.config.jitter > 0:
            delay *= 1 + self._rng.uniform(-self.config.jitter, self.config.jitter)
        return min(self.config.max_delay, max(0.0, delay))

    async def run(
        self,
        operation: Callable[[], Awaitable[AgentResult]],
        label: str = "agent call",
    ) -> Tuple[AgentResult, RetryState]:
        """Run ``operation`` until it succeeds or retrying stops.

        Retrying stops on success, on a non-transient error, or once the
        attempt budget is used.

        Returns:
            The last AgentResult and the RetryState describing the attempts
        """
        max_attempts = max(1, self.config.max_attempts)
        state = RetryState(max_attempts=max_attempts)
        result = AgentResult(success=False, error="not attempted")

        for attempt in range(1, max_attempts + 1):
            state.attempt = attempt
            try:
                result = await operation()
            except Exception as e:
                logger.log_error("retry", e, {"label": label, "attempt": attempt})
                result = AgentResult(success=False, error=str(e))

            if result.agent_used:
                state.agent_used = result.agent_used

            if result.success:
                if attempt > 1:
                    logger.info(f"[retry] {label} succeeded on attempt {attempt}")
                return result, state

            state.last_error = result.error
            error_class = classify_error(result.error)
            logger.warning(
                f"[retry] {label} attempt {attempt}/{max_attempts} failed "
                f"({error_class.value}): {result.error}"
            )

            if not error_class.is_transient:
                logger.info(f"[retry] not retrying {label}: {error_class.value} is permanent")
                break
            if attempt >= max_attempts:
                break

            delay = self.get_backoff_delay(attempt)
            state.delays.append(delay)
            logger.info(f"[retry] retrying {label} in {delay:.2f}s")
            await self._sleep(delay)

        return result, state


def create_retry_handler(policy: Optional[VerificationPolicy] = None, **kwargs) -> RetryHandler:
    """Create a retry handler from a verification policy."""
    config = RetryConfig.from_policy(policy) if policy else RetryConfig()
    return RetryHandler(config, **kwargs)
