from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Outcome = Literal["applied", "conflict"]


@dataclass(frozen=True)
class GuardResult:
    outcome: Outcome
    version: int


def check_and_increment(stored: int, supplied: int) -> GuardResult:
    """Optimistic version rule.

    A write carrying the version it read is applied (and the version bumped by
    one) only if nobody else bumped it in between. The ordered store enforces the
    same rule atomically with ``WHERE version = :supplied``.
    """
    if stored != supplied:
        return GuardResult(outcome="conflict", version=stored)
    return GuardResult(outcome="applied", version=stored + 1)


def parse_expected_version(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    value = int(raw.strip())
    if value <= 0:
        raise ValueError("expected version must be positive")
    return value
