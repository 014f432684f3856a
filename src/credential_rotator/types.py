# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Type definitions shared by the pool, policy and classifier.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class FailureTier(str, Enum):
    """Severity of an upstream failure, as seen by the cooldown policy."""

    QUOTA = "quota"  # Long cooldown, key is out of quota
    PERMANENT = "permanent"  # No automatic recovery
    TRANSIENT = "transient"  # Suspended only after repeated failures


@dataclass
class CredentialRecord:
    """
    Health state for one configured credential.

    Records are mutated in place for the lifetime of the pool. Timestamps
    are epoch seconds.
    """

    secret: str
    active: bool = True
    error_count: int = 0
    last_error: Optional[float] = None
    last_used: Optional[float] = None
    quota_exhausted: bool = False
    permanently_suspended: bool = False

    def __repr__(self) -> str:
        # Keep the secret out of reprs that end up in logs or tracebacks
        from .error_handler import mask_credential

        return (
            f"CredentialRecord(secret={mask_credential(self.secret)!r}, "
            f"active={self.active}, error_count={self.error_count}, "
            f"quota_exhausted={self.quota_exhausted}, "
            f"permanently_suspended={self.permanently_suspended})"
        )


@dataclass(frozen=True)
class FailureSignal:
    """The parts of an upstream failure the classifier looks at."""

    message: Optional[str] = None
    code: Optional[int] = None
