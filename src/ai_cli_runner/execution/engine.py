from __future__ import annotations

from typing import Protocol

from .types import InvocationOutcome, InvocationRequest


class ExecutionEngine(Protocol):
    def execute(self, request: InvocationRequest) -> InvocationOutcome:
        """Execute one request and return its classified outcome.

        Example:
            ```python
            outcome = engine.execute(InvocationRequest("/usr/bin/echo", ["hi"], timeout_seconds=5))
            ```
        """
        ...
