# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

import logging
import os
from typing import Any, Dict, Optional

import litellm

from .constants import DEFAULT_MAX_ATTEMPTS
from .executor import RequestExecutor
from .key_manager import KeyManager

lib_logger = logging.getLogger("credential_rotator")


class RotatingClient:
    """
    A client that rotates API keys across LiteLLM calls, with support for
    both streaming and non-streaming responses.
    """

    def __init__(
        self,
        key_manager: KeyManager,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        default_model: Optional[str] = None,
        litellm_params: Optional[Dict[str, Any]] = None,
    ):
        os.environ["LITELLM_LOG"] = "ERROR"
        litellm.set_verbose = False
        litellm.drop_params = True

        self.key_manager = key_manager
        self.default_model = default_model
        self.litellm_params = litellm_params or {}
        self.executor = RequestExecutor(key_manager, max_attempts)

    async def acompletion(self, **kwargs) -> Any:
        """
        Performs a completion call, rotating to the next key on failure.

        With ``stream=True`` the return value is an async generator of
        chunks; only opening the stream is retried.
        """
        model = kwargs.get("model") or self.default_model
        if not model:
            raise ValueError("'model' is a required parameter.")

        # The key always comes from the pool
        kwargs.pop("api_key", None)
        request = {**self.litellm_params, **kwargs, "model": model}

        async def call(api_key: str) -> Any:
            return await litellm.acompletion(api_key=api_key, **request)

        if request.get("stream", False):
            return await self.executor.execute_streaming(call)
        return await self.executor.execute(call)
