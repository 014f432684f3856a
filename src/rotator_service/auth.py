import hmac

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import APIKeyHeader

from credential_rotator import KeyManager, RotatingClient
from rotator_service.settings import ServiceSettings

api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_settings(request: Request) -> ServiceSettings:
    return request.app.state.settings


def get_key_manager(request: Request) -> KeyManager:
    """Dependency to get the key manager instance from the app state."""
    return request.app.state.key_manager


def get_rotating_client(request: Request) -> RotatingClient:
    return request.app.state.rotating_client


async def verify_api_key(
    auth: str | None = Depends(api_key_header),
    settings: ServiceSettings = Depends(get_settings),
) -> None:
    """Dependency to verify the proxy API key, when one is configured."""
    if settings.proxy_api_key is None:
        return
    expected = f"Bearer {settings.proxy_api_key}"
    if not auth or not hmac.compare_digest(auth, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key",
        )
