import logging
import os
from dataclasses import dataclass

from credential_rotator.config import parse_bool
from credential_rotator.constants import DEFAULT_DIAGNOSTIC_MODEL


class SecurityValidationError(RuntimeError):
    pass


def parse_bool_env(name: str, default: bool) -> bool:
    return parse_bool(os.getenv(name), default)


def get_app_env() -> str:
    value = (os.getenv("APP_ENV") or "dev").strip().lower()
    if value in {"prod", "production"}:
        return "prod"
    return "dev"


def is_prod() -> bool:
    return get_app_env() == "prod"


def allow_insecure_defaults() -> bool:
    default = not is_prod()
    return parse_bool_env("ALLOW_INSECURE_DEFAULTS", default)


def get_proxy_api_key() -> str | None:
    return (os.getenv("PROXY_API_KEY") or "").strip() or None


@dataclass(frozen=True)
class ServiceSettings:
    proxy_api_key: str | None
    diagnostic_model: str
    default_model: str | None
    failure_log_dir: str | None = None


def get_service_settings() -> ServiceSettings:
    return ServiceSettings(
        proxy_api_key=get_proxy_api_key(),
        diagnostic_model=(os.getenv("DIAGNOSTIC_MODEL") or "").strip()
        or DEFAULT_DIAGNOSTIC_MODEL,
        default_model=(os.getenv("DEFAULT_MODEL") or "").strip() or None,
        failure_log_dir=(os.getenv("FAILURE_LOG_DIR") or "").strip() or None,
    )


def validate_proxy_settings(settings: ServiceSettings) -> None:
    if settings.proxy_api_key:
        return

    if allow_insecure_defaults():
        logging.warning(
            "SECURITY WARNING: PROXY_API_KEY is not set. All routes are open. "
            "Set PROXY_API_KEY for non-local usage."
        )
        return

    raise SecurityValidationError(
        "Refusing startup: PROXY_API_KEY is missing. Set PROXY_API_KEY or "
        "ALLOW_INSECURE_DEFAULTS=true explicitly."
    )
