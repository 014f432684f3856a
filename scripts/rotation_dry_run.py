"""
Offline walk-through of key rotation.

Patches litellm.acompletion with a fake that fails a configurable number of
times per key, then runs one non-streaming and one streaming request through
RotatingClient and prints the pool status after each.
"""

import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict

try:
    import litellm
except ModuleNotFoundError as exc:
    print("Missing dependency: litellm. Activate venv and install the package.")
    raise SystemExit(1) from exc

repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
src_root = os.path.join(repo_root, "src")
if src_root not in sys.path:
    sys.path.insert(0, src_root)

from credential_rotator import (
    CredentialRotationError,
    KeyManager,
    RotatingClient,
    mask_credential,
)


class DryRunUpstreamError(Exception):
    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


# key -> list of failures still to raise, in order
FAILURE_SCRIPT: Dict[str, list] = {
    "dry-run-key-one-1111": [DryRunUpstreamError("Quota exceeded", 429)],
    "dry-run-key-two-2222": [DryRunUpstreamError("Service unavailable", 503)],
    "dry-run-key-three-3333": [],
}


async def _fake_acompletion(**kwargs: Any):
    key = kwargs["api_key"]
    pending = FAILURE_SCRIPT.get(key, [])
    if pending:
        error = pending.pop(0)
        print(f"Dry run: {mask_credential(key)} -> {error}")
        raise error

    print(f"Dry run: {mask_credential(key)} -> success")
    if kwargs.get("stream"):

        async def _generator():
            for word in ("dry", "run"):
                yield {"choices": [{"index": 0, "delta": {"content": word}}]}

        return _generator()

    return {
        "id": "dry-run",
        "object": "chat.completion",
        "model": kwargs.get("model") or "unknown",
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": "dry-run"}}
        ],
    }


async def _print_status(manager: KeyManager) -> None:
    print(json.dumps(await manager.get_status(), indent=2))


async def run_demo() -> int:
    logging.basicConfig(level=logging.INFO)
    manager = KeyManager(list(FAILURE_SCRIPT))
    client = RotatingClient(manager, default_model="gemini/gemini-2.5-flash")
    messages = [{"role": "user", "content": "ping"}]

    original_acompletion = litellm.acompletion
    litellm.acompletion = _fake_acompletion
    try:
        print("Dry run: non-streaming request...")
        try:
            response = await client.acompletion(messages=messages)
            print(f"Dry run: non-streaming result = {response['choices'][0]}")
        except CredentialRotationError as e:
            print(f"Non-streaming: {e} (unexpected in dry run)")
        await _print_status(manager)

        print("Dry run: streaming request...")
        stream = await client.acompletion(messages=messages, stream=True)
        async for chunk in stream:
            print(f"data: {json.dumps(chunk)}")
        print("data: [DONE]")
        await _print_status(manager)
    finally:
        litellm.acompletion = original_acompletion

    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(run_demo()))
