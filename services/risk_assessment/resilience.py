"""Ordered fallback chains for configuration reads.

A chain is a list of named attempts tried in order; the first one that
produces a value wins. An attempt fails by raising and is inapplicable when it
returns None. The last attempt of every chain is a hardcoded default with no
external dependency, marked ``fallback=True`` so its value is never cached.
"""
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ConfigurationUnavailable(Exception):
    def __init__(self, what: str, failures: list[tuple[str, str]]):
        detail = "; ".join(f"{name}: {reason}" for name, reason in failures) or "no attempts"
        super().__init__(f"No access path produced {what} ({detail})")
        self.what = what
        self.failures = failures


@dataclass(frozen=True)
class Attempt(Generic[T]):
    name: str
    run: Callable[[], Awaitable[T | None]]
    fallback: bool = False


@dataclass(frozen=True)
class Resolved(Generic[T]):
    value: T
    source: str
    degraded: bool = False


async def first_success(what: str, attempts: Sequence[Attempt[T]]) -> Resolved[T]:
    """Return the value of the first attempt that succeeds.

    Intermediate failures are logged and skipped. Only when every attempt has
    failed or returned nothing is ConfigurationUnavailable raised.
    """
    failures: list[tuple[str, str]] = []
    for index, attempt in enumerate(attempts):
        try:
            value = await attempt.run()
        except Exception as e:
            logger.warning(f"Loading {what} via '{attempt.name}' failed: {e}")
            failures.append((attempt.name, str(e) or type(e).__name__))
            continue

        if value is None:
            logger.info(f"Loading {what} via '{attempt.name}' returned nothing, trying next")
            failures.append((attempt.name, "empty"))
            continue

        if index > 0:
            logger.info(f"Loaded {what} via fallback '{attempt.name}'")
        return Resolved(value=value, source=attempt.name, degraded=attempt.fallback)

    raise ConfigurationUnavailable(what, failures)
