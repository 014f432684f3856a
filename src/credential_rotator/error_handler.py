# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Error types, failure classification and credential masking.

Upstream failures arrive in many shapes (litellm exceptions, httpx errors,
raw JSON error envelopes, plain strings). They are reduced to a
FailureSignal and sorted into exactly one FailureTier:

- quota: the key ran out of quota (429 or a quota message)
- permanent: the key is invalid, revoked or suspended (401/403)
- transient: anything else
"""

from typing import Any, Optional

import httpx

from .constants import (
    PERMANENT_ERROR_PATTERNS,
    PERMANENT_STATUS_CODES,
    QUOTA_ERROR_PATTERNS,
    QUOTA_STATUS_CODES,
)
from .types import FailureSignal, FailureTier


# =============================================================================
# EXCEPTIONS
# =============================================================================


class CredentialRotationError(Exception):
    """Base class for failures raised by the rotator itself, not the upstream."""

    pass


class NoAvailableKeysError(CredentialRotationError):
    """Raised when no credential is configured or every credential is suspended."""

    pass


class AllCredentialsExhaustedError(CredentialRotationError):
    """
    Raised when the attempt budget is spent without a successful call.

    Attributes:
        attempts: Number of attempts made
        last_error: The most recent upstream failure
    """

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(
            f"All credentials exhausted after {attempts} attempt(s){detail}"
        )


# =============================================================================
# MASKING
# =============================================================================


def mask_credential(credential: str) -> str:
    """
    Mask a credential for safe display in logs and status output.

    Secrets of 8 characters or fewer are fully hidden. Longer secrets keep
    the first and last 4 characters.

    Examples:
        >>> mask_credential("abcdefgh")
        "********"
        >>> mask_credential("AIzaSyABCDEF")
        "AIza****CDEF"
    """
    if len(credential) <= 8:
        return "*" * len(credential)
    return credential[:4] + "*" * (len(credential) - 8) + credential[-4:]


# =============================================================================
# SIGNAL EXTRACTION
# =============================================================================


def _coerce_code(value: Any) -> Optional[int]:
    """Returns value as an int status code, or None if it isn't numeric."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _first_code(*candidates: Any) -> Optional[int]:
    for candidate in candidates:
        code = _coerce_code(candidate)
        if code:
            return code
    return None


def extract_failure_signal(error: Any) -> FailureSignal:
    """
    Reduces an arbitrary failure object to a FailureSignal.

    Accepts exceptions, dicts (optionally wrapped in an ``{"error": {...}}``
    envelope), plain strings and None. A ``code`` wins over a ``status``
    when both are present.
    """
    if error is None:
        return FailureSignal()

    if isinstance(error, FailureSignal):
        return error

    if isinstance(error, str):
        return FailureSignal(message=error)

    if isinstance(error, dict):
        body = error.get("error") if isinstance(error.get("error"), dict) else error
        message = body.get("message")
        return FailureSignal(
            message=message if isinstance(message, str) else None,
            code=_first_code(body.get("code"), body.get("status")),
        )

    message = getattr(error, "message", None)
    if not isinstance(message, str) or not message:
        message = str(error) or None

    response_code = None
    if isinstance(error, httpx.HTTPStatusError):
        response_code = error.response.status_code

    code = _first_code(
        getattr(error, "code", None),
        getattr(error, "status", None),
        getattr(error, "status_code", None),
        response_code,
    )
    return FailureSignal(message=message, code=code)


# =============================================================================
# CLASSIFICATION
# =============================================================================


def _matches(message: str, patterns) -> bool:
    return any(pattern in message for pattern in patterns)


def classify_failure(signal: FailureSignal) -> FailureTier:
    """
    Assigns a failure signal to exactly one tier.

    Precedence is quota, then permanent, then transient; the first match
    wins. Message matching is case-insensitive.
    """
    message = (signal.message or "").lower()

    if _matches(message, QUOTA_ERROR_PATTERNS) or signal.code in QUOTA_STATUS_CODES:
        return FailureTier.QUOTA

    if (
        _matches(message, PERMANENT_ERROR_PATTERNS)
        or signal.code in PERMANENT_STATUS_CODES
    ):
        return FailureTier.PERMANENT

    return FailureTier.TRANSIENT


def classify_error(error: Any) -> FailureTier:
    """Classifies any failure object accepted by extract_failure_signal."""
    return classify_failure(extract_failure_signal(error))


def describe_error(error: Any) -> str:
    """Human-readable one-liner for a failure, used in logs and diagnostics."""
    signal = extract_failure_signal(error)
    return signal.message or (f"HTTP {signal.code}" if signal.code else "Unknown error")
