# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Live key check for operators.

Makes a small number of real upstream calls, cycling keys, and reports what
happened on each attempt alongside the pool status.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List

import litellm

from .constants import DEFAULT_DIAGNOSTIC_ATTEMPTS, DEFAULT_DIAGNOSTIC_MODEL
from .error_handler import describe_error, mask_credential
from .key_manager import KeyManager

lib_logger = logging.getLogger("credential_rotator")

Probe = Callable[[str], Awaitable[Any]]


def litellm_probe(model: str = DEFAULT_DIAGNOSTIC_MODEL) -> Probe:
    """Builds a probe that sends a minimal one-message generation."""

    async def probe(api_key: str) -> Any:
        return await litellm.acompletion(
            model=model,
            api_key=api_key,
            messages=[{"role": "user", "content": "Hi"}],
            max_tokens=1,
        )

    return probe


async def run_key_test(
    key_manager: KeyManager,
    probe: Probe,
    max_attempts: int = DEFAULT_DIAGNOSTIC_ATTEMPTS,
) -> Dict[str, Any]:
    """
    Probes keys until one succeeds or ``max_attempts`` probes have failed.

    Failed probes are reported to the key manager like any other failure,
    so a test run can suspend bad keys.
    """
    results: List[Dict[str, Any]] = []
    attempts = 0

    lib_logger.info("Starting API key test...")

    while attempts < max_attempts:
        api_key = await key_manager.get_api_key()
        if api_key is None:
            results.append(
                {
                    "attempt": attempts + 1,
                    "status": "error",
                    "message": "No API key available",
                }
            )
            break

        attempts += 1
        try:
            await probe(api_key)
        except Exception as e:
            await key_manager.report_error(api_key, e)
            results.append(
                {
                    "attempt": attempts,
                    "status": "error",
                    "keyMask": mask_credential(api_key),
                    "error": describe_error(e),
                }
            )
            continue

        await key_manager.report_success(api_key)
        results.append(
            {
                "attempt": attempts,
                "status": "success",
                "keyMask": mask_credential(api_key),
                "message": "API call successful",
            }
        )
        break

    status = await key_manager.get_status()
    success = any(result["status"] == "success" for result in results)
    lib_logger.info(f"API key test finished: {attempts} attempt(s), success={success}")

    return {
        "testResults": results,
        "keyManagerStatus": status,
        "summary": {
            "totalAttempts": attempts,
            "success": success,
            "activeKeys": status["activeKeys"],
            "totalKeys": status["totalKeys"],
        },
    }
