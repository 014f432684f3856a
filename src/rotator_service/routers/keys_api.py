import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from credential_rotator import KeyManager, litellm_probe, run_key_test
from rotator_service.auth import get_key_manager, get_settings, verify_api_key
from rotator_service.settings import ServiceSettings

router = APIRouter(prefix="/api/keys", tags=["keys"])


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class KeyStatusItem(CamelModel):
    masked_key: str
    is_active: bool
    error_count: int
    last_error: str | None
    last_used: str | None
    quota_exhausted: bool
    permanently_suspended: bool


class KeyPoolStatusResponse(CamelModel):
    total_keys: int
    active_keys: int
    current_index: int
    keys: list[KeyStatusItem]


class KeyTestAttempt(CamelModel):
    attempt: int
    status: Literal["success", "error"]
    key_mask: str | None = None
    message: str | None = None
    error: str | None = None


class KeyTestSummary(CamelModel):
    total_attempts: int
    success: bool
    active_keys: int
    total_keys: int


class KeyTestResponse(CamelModel):
    test_results: list[KeyTestAttempt]
    key_manager_status: KeyPoolStatusResponse
    summary: KeyTestSummary


class KeyResetResponse(BaseModel):
    ok: bool
    index: int


@router.get("/status", response_model=KeyPoolStatusResponse)
async def key_status(
    _: None = Depends(verify_api_key),
    key_manager: KeyManager = Depends(get_key_manager),
) -> KeyPoolStatusResponse:
    return KeyPoolStatusResponse.model_validate(await key_manager.get_status())


@router.post("/test", response_model=KeyTestResponse)
async def test_keys(
    attempts: int = Query(default=3, ge=1, le=10),
    _: None = Depends(verify_api_key),
    key_manager: KeyManager = Depends(get_key_manager),
    settings: ServiceSettings = Depends(get_settings),
) -> KeyTestResponse:
    try:
        report = await run_key_test(
            key_manager,
            litellm_probe(settings.diagnostic_model),
            max_attempts=attempts,
        )
    except Exception as e:
        logging.error(f"Error testing API keys: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to test API keys",
        ) from e
    return KeyTestResponse.model_validate(report)


@router.post("/{index}/reset", response_model=KeyResetResponse)
async def reset_key(
    index: int,
    _: None = Depends(verify_api_key),
    key_manager: KeyManager = Depends(get_key_manager),
) -> KeyResetResponse:
    if not await key_manager.reset_key(index):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Key not found",
        )
    return KeyResetResponse(ok=True, index=index)
