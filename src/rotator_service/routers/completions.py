import json
import logging
from typing import Any, AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from credential_rotator import (
    AllCredentialsExhaustedError,
    NoAvailableKeysError,
    RotatingClient,
)
from rotator_service.auth import get_rotating_client, verify_api_key

router = APIRouter(tags=["completions"])


def _to_dict(chunk: Any) -> dict:
    if isinstance(chunk, dict):
        return chunk
    if hasattr(chunk, "model_dump"):
        return chunk.model_dump()
    return {"data": str(chunk)}


async def _sse(stream: AsyncGenerator[Any, None]) -> AsyncGenerator[str, None]:
    try:
        async for chunk in stream:
            yield f"data: {json.dumps(_to_dict(chunk))}\n\n"
    except Exception as e:
        logging.error(f"Stream failed mid-transfer: {e}")
        yield f"data: {json.dumps({'error': {'message': 'Upstream stream failed'}})}\n\n"
    yield "data: [DONE]\n\n"


@router.post("/v1/chat/completions")
async def chat_completions(
    request: Request,
    client: RotatingClient = Depends(get_rotating_client),
    _: None = Depends(verify_api_key),
):
    """
    OpenAI-compatible pass-through powered by the RotatingClient.
    Handles both streaming and non-streaming responses.
    """
    data = await request.json()
    is_streaming = data.get("stream", False)

    try:
        response = await client.acompletion(**data)
    except NoAvailableKeysError as e:
        logging.error(f"No API keys available: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="No API keys available",
        ) from e
    except AllCredentialsExhaustedError as e:
        logging.error(f"Request failed after all retries: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="All API keys exhausted",
        ) from e
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    if is_streaming:
        return StreamingResponse(_sse(response), media_type="text/event-stream")
    return _to_dict(response)
