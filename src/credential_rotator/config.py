# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Configuration loading for credential rotation.

Keys come from a numbered family of environment variables:

    GOOGLE_GENERATIVE_AI_API_KEY
    GOOGLE_GENERATIVE_AI_API_KEY_2
    ...
    GOOGLE_GENERATIVE_AI_API_KEY_10

Missing or blank entries are skipped; the order of the remaining entries is
the rotation order. Tunables are read from KEY_ROTATION_* variables and
ALWAYS override the defaults in constants.py.
"""

import logging
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from .constants import (
    DEFAULT_ERROR_COOLDOWN,
    DEFAULT_KEY_ENV_NAME,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_MAX_ERROR_THRESHOLD,
    DEFAULT_QUOTA_COOLDOWN,
    DEFAULT_RESET_ERRORS_ON_SUCCESS,
    MAX_CONFIGURED_KEYS,
)

lib_logger = logging.getLogger("credential_rotator")

ENV_KEY_NAME = "KEY_ROTATION_ENV_NAME"
ENV_MAX_ATTEMPTS = "KEY_ROTATION_MAX_ATTEMPTS"
ENV_ERROR_THRESHOLD = "KEY_ROTATION_ERROR_THRESHOLD"
ENV_ERROR_COOLDOWN = "KEY_ROTATION_ERROR_COOLDOWN"
ENV_QUOTA_COOLDOWN = "KEY_ROTATION_QUOTA_COOLDOWN"
ENV_RESET_ON_SUCCESS = "KEY_ROTATION_RESET_ON_SUCCESS"


def key_env_names(base_name: str, max_keys: int = MAX_CONFIGURED_KEYS) -> List[str]:
    """Returns ``[base_name, base_name_2, ..., base_name_<max_keys>]``."""
    return [base_name] + [f"{base_name}_{n}" for n in range(2, max_keys + 1)]


def load_api_keys(
    base_name: str = DEFAULT_KEY_ENV_NAME,
    environ: Optional[Mapping[str, str]] = None,
    max_keys: int = MAX_CONFIGURED_KEYS,
) -> List[str]:
    """Reads the ordered list of non-empty keys for ``base_name``."""
    env = os.environ if environ is None else environ
    keys = []
    for name in key_env_names(base_name, max_keys):
        value = (env.get(name) or "").strip()
        if value:
            keys.append(value)
    return keys


def parse_bool(raw: Optional[str], default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        lib_logger.warning(f"Invalid {name}={raw!r}. Using default {default}.")
        return default
    if value < 1:
        lib_logger.warning(f"Invalid {name}={value}. Setting to 1.")
        return 1
    return value


@dataclass
class RotatorConfig:
    """Tunables for the pool, cooldown policy and retry wrapper."""

    key_env_name: str = DEFAULT_KEY_ENV_NAME
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    max_error_threshold: int = DEFAULT_MAX_ERROR_THRESHOLD
    error_cooldown: int = DEFAULT_ERROR_COOLDOWN
    quota_cooldown: int = DEFAULT_QUOTA_COOLDOWN
    reset_errors_on_success: bool = DEFAULT_RESET_ERRORS_ON_SUCCESS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RotatorConfig":
        env = os.environ if environ is None else environ
        return cls(
            key_env_name=(env.get(ENV_KEY_NAME) or "").strip() or DEFAULT_KEY_ENV_NAME,
            max_attempts=_parse_int(env, ENV_MAX_ATTEMPTS, DEFAULT_MAX_ATTEMPTS),
            max_error_threshold=_parse_int(
                env, ENV_ERROR_THRESHOLD, DEFAULT_MAX_ERROR_THRESHOLD
            ),
            error_cooldown=_parse_int(env, ENV_ERROR_COOLDOWN, DEFAULT_ERROR_COOLDOWN),
            quota_cooldown=_parse_int(env, ENV_QUOTA_COOLDOWN, DEFAULT_QUOTA_COOLDOWN),
            reset_errors_on_success=parse_bool(
                env.get(ENV_RESET_ON_SUCCESS), DEFAULT_RESET_ERRORS_ON_SUCCESS
            ),
        )

    def load_keys(self, environ: Optional[Mapping[str, str]] = None) -> List[str]:
        return load_api_keys(self.key_env_name, environ)
