# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Round-robin credential selection.

Walks the pool from the cursor, handing out the first active credential
(or the first suspended one whose cooldown has elapsed), then moves the
cursor one past it. With every key healthy this cycles through keys in
configured order, one per call.
"""

import logging
import time
from typing import Callable, Optional

from .cooldown_policy import CooldownPolicy
from .error_handler import mask_credential
from .pool import CredentialPool

lib_logger = logging.getLogger("credential_rotator")


class RoundRobinSelector:
    """
    Round-robin selection with skip-if-unhealthy.

    Not synchronized; KeyManager calls ``select`` while holding the pool lock.
    """

    def __init__(
        self,
        pool: CredentialPool,
        policy: CooldownPolicy,
        clock: Callable[[], float] = time.time,
    ):
        self.pool = pool
        self.policy = policy
        self.clock = clock

    def select(self) -> Optional[str]:
        """
        Returns the next usable secret, or None if no key is available.

        Scans at most one full revolution of the pool.
        """
        size = self.pool.size()
        if size == 0:
            return None

        now = self.clock()
        start = self.pool.current_index % size

        for offset in range(size):
            index = (start + offset) % size
            record = self.pool.record_at(index)

            if not record.active:
                if not self.policy.is_eligible(record, now):
                    continue
                cooldown_type = (
                    "quota cooldown" if record.quota_exhausted else "error cooldown"
                )
                self.policy.reactivate(record)
                lib_logger.info(
                    f"Reactivated key {mask_credential(record.secret)} after {cooldown_type}"
                )

            record.last_used = now
            self.pool.current_index = (index + 1) % size
            return record.secret

        self.pool.current_index = (start + size) % size
        lib_logger.error("All keys are suspended or cooling down")
        return None
