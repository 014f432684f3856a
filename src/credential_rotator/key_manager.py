# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
KeyManager: the single owner of a credential pool.

Construct one per application (e.g. in the web app lifespan) and pass it to
whatever needs keys. Every operation that reads or mutates pool state runs
under the pool's asyncio.Lock, so selection and health updates never
interleave between tasks.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .config import RotatorConfig
from .cooldown_policy import CooldownPolicy
from .error_handler import classify_error, describe_error, mask_credential
from .pool import CredentialPool
from .selector import RoundRobinSelector
from .types import CredentialRecord, FailureTier

lib_logger = logging.getLogger("credential_rotator")


def _iso(ts: Optional[float]) -> Optional[str]:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


class KeyManager:
    """
    Hands out API keys in round-robin order and tracks their health.

    Callers follow a simple contract: ``get_api_key()`` before an upstream
    call, then ``report_success()`` or ``report_error()`` afterwards.
    """

    def __init__(
        self,
        secrets: List[str],
        policy: Optional[CooldownPolicy] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.pool = CredentialPool(secrets)
        self.policy = policy or CooldownPolicy()
        self.clock = clock
        self.selector = RoundRobinSelector(self.pool, self.policy, clock)

        if self.pool.size() == 0:
            lib_logger.warning(
                "No API keys configured. Key manager will be unable to hand out keys."
            )
        lib_logger.info(f"Initialized key manager with {self.pool.size()} API keys")

    @classmethod
    def from_config(
        cls,
        config: RotatorConfig,
        environ: Optional[Mapping[str, str]] = None,
        clock: Callable[[], float] = time.time,
    ) -> "KeyManager":
        policy = CooldownPolicy(
            max_error_threshold=config.max_error_threshold,
            error_cooldown=config.error_cooldown,
            quota_cooldown=config.quota_cooldown,
            reset_errors_on_success=config.reset_errors_on_success,
        )
        return cls(config.load_keys(environ), policy=policy, clock=clock)

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "KeyManager":
        """Builds a manager from KEY_ROTATION_* settings and the key variables."""
        return cls.from_config(RotatorConfig.from_env(environ), environ)

    async def get_api_key(self) -> Optional[str]:
        """Returns the next usable key, or None if none is available."""
        async with self.pool.lock:
            return self.selector.select()

    async def report_error(self, secret: str, error: Any) -> Optional[FailureTier]:
        """
        Classifies a failure and applies it to the key's health.

        Returns the tier applied, or None if the key isn't in the pool.
        """
        tier = classify_error(error)
        async with self.pool.lock:
            record = self.pool.find(secret)
            if record is None:
                lib_logger.debug(
                    f"Ignoring error report for unknown key {mask_credential(secret)}"
                )
                return None

            self.policy.apply_failure(record, tier, self.clock())
            lib_logger.warning(
                f"Error with key {mask_credential(secret)}: {describe_error(error)} "
                f"(tier: {tier.value}, error count: {record.error_count})"
            )
        return tier

    async def report_success(self, secret: str) -> None:
        async with self.pool.lock:
            record = self.pool.find(secret)
            if record is not None:
                self.policy.apply_success(record)

    async def reset_key(self, target: Union[int, str]) -> bool:
        """
        Administrative reset of a key by pool index or secret.

        This is the only way back for permanently suspended keys short of a
        restart. Returns False if the key doesn't exist.
        """
        async with self.pool.lock:
            record = self._resolve(target)
            if record is None:
                return False
            self.policy.reset(record)
            lib_logger.info(f"Key {mask_credential(record.secret)} reset by operator")
            return True

    def _resolve(self, target: Union[int, str]) -> Optional[CredentialRecord]:
        if isinstance(target, int):
            if 0 <= target < self.pool.size():
                return self.pool.record_at(target)
            return None
        return self.pool.find(target)

    async def get_status(self) -> Dict[str, Any]:
        """
        Snapshot of the pool for monitoring. Keys are always masked.
        """
        async with self.pool.lock:
            keys = [
                {
                    "maskedKey": mask_credential(record.secret),
                    "isActive": record.active,
                    "errorCount": record.error_count,
                    "lastError": _iso(record.last_error),
                    "lastUsed": _iso(record.last_used),
                    "quotaExhausted": record.quota_exhausted,
                    "permanentlySuspended": record.permanently_suspended,
                }
                for record in self.pool
            ]
            return {
                "totalKeys": self.pool.size(),
                "activeKeys": sum(1 for record in self.pool if record.active),
                "currentIndex": self.pool.current_index,
                "keys": keys,
            }
