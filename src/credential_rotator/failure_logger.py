# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import json
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any, Optional, Union

from .error_handler import describe_error, extract_failure_signal, mask_credential
from .types import FailureTier

failure_logger = logging.getLogger("credential_rotator.failures")
if not failure_logger.handlers:
    failure_logger.addHandler(logging.NullHandler())


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.msg if isinstance(record.msg, dict) else record.getMessage(),
        }
        return json.dumps(log_record)


def configure_failure_logger(
    log_dir: Union[str, os.PathLike] = "logs",
) -> logging.Logger:
    """Sets up a dedicated JSON log file for failed upstream calls."""
    os.makedirs(log_dir, exist_ok=True)

    failure_logger.setLevel(logging.INFO)
    # Keep failure records out of the main application log
    failure_logger.propagate = False

    # Use a rotating file handler to keep log files from growing too large
    if not any(isinstance(h, RotatingFileHandler) for h in failure_logger.handlers):
        handler = RotatingFileHandler(
            os.path.join(log_dir, "failures.log"),
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=2,
        )
        handler.setFormatter(JsonFormatter())
        failure_logger.addHandler(handler)

    return failure_logger


def log_failure(
    api_key: str,
    attempt: int,
    error: Any,
    tier: Optional[FailureTier] = None,
) -> None:
    """Logs a structured record for a failed upstream call."""
    signal = extract_failure_signal(error)
    log_data = {
        "api_key": mask_credential(api_key),
        "attempt_number": attempt,
        "tier": tier.value if tier else None,
        "error_type": type(error).__name__,
        "error_message": describe_error(error),
        "status_code": signal.code,
    }
    failure_logger.error(log_data)
