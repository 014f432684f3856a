# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import logging

from .constants import (
    DEFAULT_ERROR_COOLDOWN,
    DEFAULT_MAX_ERROR_THRESHOLD,
    DEFAULT_QUOTA_COOLDOWN,
    DEFAULT_RESET_ERRORS_ON_SUCCESS,
)
from .error_handler import mask_credential
from .types import CredentialRecord, FailureTier

lib_logger = logging.getLogger("credential_rotator")


class CooldownPolicy:
    """
    Applies classified failures to a credential record and decides when a
    suspended credential may be handed out again.

    - Quota failures suspend the key for ``quota_cooldown`` seconds.
    - Permanent failures suspend the key until an administrative reset.
    - Transient failures suspend the key once ``max_error_threshold``
      consecutive failures have been seen, for ``error_cooldown`` seconds.

    The policy never touches the pool cursor and does no locking; callers
    hold the pool lock around every call.
    """

    def __init__(
        self,
        max_error_threshold: int = DEFAULT_MAX_ERROR_THRESHOLD,
        error_cooldown: float = DEFAULT_ERROR_COOLDOWN,
        quota_cooldown: float = DEFAULT_QUOTA_COOLDOWN,
        reset_errors_on_success: bool = DEFAULT_RESET_ERRORS_ON_SUCCESS,
    ):
        self.max_error_threshold = max_error_threshold
        self.error_cooldown = error_cooldown
        self.quota_cooldown = quota_cooldown
        self.reset_errors_on_success = reset_errors_on_success

    def apply_failure(
        self, record: CredentialRecord, tier: FailureTier, now: float
    ) -> None:
        """Updates record health for a failure of the given tier."""
        record.error_count += 1
        record.last_error = now
        masked = mask_credential(record.secret)

        if tier == FailureTier.QUOTA:
            record.active = False
            record.quota_exhausted = True
            lib_logger.error(
                f"Key {masked} quota exhausted ({self.quota_cooldown / 3600:.0f}h cooldown)"
            )
        elif tier == FailureTier.PERMANENT:
            record.active = False
            record.permanently_suspended = True
            lib_logger.error(
                f"Key {masked} suspended until reset (permanent failure)"
            )
        elif record.error_count >= self.max_error_threshold:
            record.active = False
            lib_logger.warning(
                f"Temporarily deactivating key {masked} after "
                f"{record.error_count} errors ({self.error_cooldown:.0f}s cooldown)"
            )

    def apply_success(self, record: CredentialRecord) -> None:
        if self.reset_errors_on_success:
            record.error_count = 0

    def cooldown_for(self, record: CredentialRecord) -> float:
        return self.quota_cooldown if record.quota_exhausted else self.error_cooldown

    def is_eligible(self, record: CredentialRecord, now: float) -> bool:
        """
        Checks whether a suspended record may be reactivated.

        Active records are not "eligible" (they need no reactivation).
        Permanently suspended records are never eligible. A record that was
        suspended without a recorded failure is eligible immediately.
        """
        if record.active or record.permanently_suspended:
            return False
        if record.last_error is None:
            return True
        return now - record.last_error > self.cooldown_for(record)

    def reactivate(self, record: CredentialRecord) -> None:
        record.active = True
        record.error_count = 0
        record.quota_exhausted = False

    def reset(self, record: CredentialRecord) -> None:
        """Administrative reset: clears every health field, permanent included."""
        self.reactivate(record)
        record.permanently_suspended = False
        record.last_error = None
