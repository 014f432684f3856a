import logging
from typing import TYPE_CHECKING

from .config import RotatorConfig, load_api_keys
from .cooldown_policy import CooldownPolicy
from .error_handler import (
    AllCredentialsExhaustedError,
    CredentialRotationError,
    NoAvailableKeysError,
    classify_error,
    classify_failure,
    extract_failure_signal,
    mask_credential,
)
from .executor import RequestExecutor, execute_with_retry, stream_with_retry
from .key_manager import KeyManager
from .pool import CredentialPool
from .selector import RoundRobinSelector
from .types import CredentialRecord, FailureSignal, FailureTier

lib_logger = logging.getLogger("credential_rotator")
if not lib_logger.handlers:
    lib_logger.addHandler(logging.NullHandler())

# For type checkers, import the litellm-backed pieces statically
# At runtime, they're lazy-loaded via __getattr__
if TYPE_CHECKING:
    from .client import RotatingClient
    from .diagnostics import litellm_probe, run_key_test

__all__ = [
    "KeyManager",
    "CredentialPool",
    "CredentialRecord",
    "RoundRobinSelector",
    "CooldownPolicy",
    "RequestExecutor",
    "execute_with_retry",
    "stream_with_retry",
    "RotatorConfig",
    "load_api_keys",
    "FailureSignal",
    "FailureTier",
    "classify_error",
    "classify_failure",
    "extract_failure_signal",
    "mask_credential",
    "CredentialRotationError",
    "NoAvailableKeysError",
    "AllCredentialsExhaustedError",
    "RotatingClient",
    "run_key_test",
    "litellm_probe",
]


def __getattr__(name):
    """Lazy-load the litellm-backed client and diagnostics to speed up module import."""
    if name == "RotatingClient":
        from .client import RotatingClient

        return RotatingClient
    if name == "run_key_test":
        from .diagnostics import run_key_test

        return run_key_test
    if name == "litellm_probe":
        from .diagnostics import litellm_probe

        return litellm_probe
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
