from __future__ import annotations

from typing import Protocol

from .model import AttendancePolicy


class PolicyRepository(Protocol):
    def load(self) -> AttendancePolicy:
        """Return the current office/PIN/face policy.

        Raises ``StoreUnavailable`` when the office settings cannot be read.
        """

        raise NotImplementedError
