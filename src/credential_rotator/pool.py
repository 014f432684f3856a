# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import asyncio
import logging
from typing import Dict, Iterator, List, Optional

from .error_handler import mask_credential
from .types import CredentialRecord

lib_logger = logging.getLogger("credential_rotator")


class CredentialPool:
    """
    Ordered, fixed-size set of credential records plus the round-robin cursor.

    The order of ``secrets`` defines the rotation order. The pool is never
    resized after construction. ``lock`` serializes selection and health
    updates; the pool itself does not take it.
    """

    def __init__(self, secrets: List[str]):
        self._records: List[CredentialRecord] = []
        self._by_secret: Dict[str, CredentialRecord] = {}
        for secret in secrets:
            if secret in self._by_secret:
                lib_logger.warning(
                    f"Ignoring duplicate key {mask_credential(secret)} in configuration"
                )
                continue
            record = CredentialRecord(secret=secret)
            self._records.append(record)
            self._by_secret[secret] = record

        self.current_index = 0
        self.lock = asyncio.Lock()

    def size(self) -> int:
        return len(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[CredentialRecord]:
        return iter(self._records)

    def record_at(self, index: int) -> CredentialRecord:
        """Returns the record at ``index`` for in-place mutation."""
        return self._records[index]

    def find(self, secret: str) -> Optional[CredentialRecord]:
        return self._by_secret.get(secret)

    def index_of(self, secret: str) -> Optional[int]:
        record = self._by_secret.get(secret)
        if record is None:
            return None
        return self._records.index(record)
