# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Default values for credential rotation.

All tunables here can be overridden through RotatorConfig.from_env().
"""

# =============================================================================
# CONFIGURATION SOURCE
# =============================================================================

# Base environment variable; additional keys use the _2 ... _10 suffixes.
DEFAULT_KEY_ENV_NAME = "GOOGLE_GENERATIVE_AI_API_KEY"
MAX_CONFIGURED_KEYS = 10

# =============================================================================
# HEALTH POLICY
# =============================================================================

# Consecutive transient failures before a key is suspended
DEFAULT_MAX_ERROR_THRESHOLD = 3

# Cooldown before a transiently suspended key may be retried (seconds)
DEFAULT_ERROR_COOLDOWN = 5 * 60

# Cooldown before a quota-exhausted key may be retried (seconds)
DEFAULT_QUOTA_COOLDOWN = 24 * 60 * 60

DEFAULT_RESET_ERRORS_ON_SUCCESS = False

# =============================================================================
# RETRY
# =============================================================================

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_DIAGNOSTIC_ATTEMPTS = 3
DEFAULT_DIAGNOSTIC_MODEL = "gemini/gemini-2.5-flash"

# =============================================================================
# CLASSIFICATION
# =============================================================================

QUOTA_ERROR_PATTERNS = (
    "exceeded your current quota",
    "quota exceeded",
    "resource exhausted",
)
QUOTA_STATUS_CODES = frozenset({429})

PERMANENT_ERROR_PATTERNS = (
    "suspended",
    "permission denied",
    "api key not valid",
    "invalid api key",
)
PERMANENT_STATUS_CODES = frozenset({401, 403})
