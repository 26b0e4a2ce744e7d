from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Generic, List, Optional, Sequence, Tuple, TypeVar


T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


@dataclass
class Attempt:
    name: str
    ok: bool
    duration_ms: int
    error: Optional[BaseException] = None


@dataclass
class LadderResult(Generic[R]):
    name: str
    value: R
    attempts: List[Attempt] = field(default_factory=list)


class LadderExhausted(Exception):
    def __init__(self, attempts: List[Attempt]):
        super().__init__(f"All {len(attempts)} attempts failed")
        self.attempts = attempts

    @property
    def last_error(self) -> Optional[BaseException]:
        return self.attempts[-1].error if self.attempts else None


def first_success(
    steps: Sequence[Tuple[str, Callable[[T], R]]],
    arg: T,
    accept: Callable[[R], bool] = bool,
) -> LadderResult[R]:
    """Run ``steps`` in order; the first one that returns an accepted value wins.

    A step fails when it raises or when ``accept`` rejects its value.
    """
    attempts: List[Attempt] = []
    for name, step in steps:
        t0 = time.time()
        try:
            value = step(arg)
        except Exception as e:
            dt = int((time.time() - t0) * 1000)
            logger.info(f"Strategy {name} failed: {e}", extra={"step": name, "status": "error", "duration_ms": dt, "error": type(e).__name__})
            attempts.append(Attempt(name=name, ok=False, duration_ms=dt, error=e))
            continue
        dt = int((time.time() - t0) * 1000)
        if not accept(value):
            logger.info(f"Strategy {name} returned no usable content", extra={"step": name, "status": "empty", "duration_ms": dt})
            attempts.append(Attempt(name=name, ok=False, duration_ms=dt))
            continue
        attempts.append(Attempt(name=name, ok=True, duration_ms=dt))
        logger.info(f"Strategy {name} succeeded", extra={"step": name, "status": "ok", "duration_ms": dt})
        return LadderResult(name=name, value=value, attempts=attempts)
    raise LadderExhausted(attempts)
