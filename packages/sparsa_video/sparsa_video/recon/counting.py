"""sparsa_video.recon.counting

Operator-call accounting.

A counter is an explicit object handed to the operator-composition step
rather than a process-wide global, so its scope is exactly one run.  The
frame loop resets it before each solve and reads it afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import wraps
from typing import Any, Callable


@dataclass
class OperatorCallCounter:
    """Tally of forward/adjoint evaluations."""

    count: int = 0

    def reset(self) -> None:
        self.count = 0

    def wrap(self, fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
        """Return ``fn`` with identical output that bumps ``count`` per call."""

        @wraps(fn)
        def counted(arg: Any) -> Any:
            self.count += 1
            return fn(arg)

        return counted
