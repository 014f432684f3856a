# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Mirrowel

"""
Unified request execution with key rotation.

One retry loop serves both call shapes:

- one-shot calls: the operation's result is returned as-is
- streaming calls: the loop guards the handshake, which lasts until the
  first chunk arrives; later chunks are relayed without any further
  retry

Each attempt uses a freshly selected key. Failures are reported to the
KeyManager (which classifies them and updates key health) before moving on
to the next key.
"""

import inspect
import logging
from typing import (
    Any,
    AsyncGenerator,
    AsyncIterable,
    AsyncIterator,
    Awaitable,
    Callable,
    Optional,
    Tuple,
    TypeVar,
    Union,
)

from .constants import DEFAULT_MAX_ATTEMPTS
from .error_handler import (
    AllCredentialsExhaustedError,
    NoAvailableKeysError,
    describe_error,
    mask_credential,
)
from .failure_logger import log_failure
from .key_manager import KeyManager

lib_logger = logging.getLogger("credential_rotator")

T = TypeVar("T")
Operation = Callable[[str], Union[T, Awaitable[T]]]
StreamOperation = Callable[
    [str], Union[AsyncIterable[Any], Awaitable[AsyncIterable[Any]]]
]


async def _invoke(operation: Callable[[str], Any], api_key: str) -> Any:
    result = operation(api_key)
    if inspect.isawaitable(result):
        result = await result
    return result


# Marks a stream that ended before yielding anything.
_NO_CHUNK = object()


async def _aclose(iterator: AsyncIterator[Any]) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is not None:
        await aclose()


class RequestExecutor:
    """
    Retry/rotation wrapper around upstream operations.

    Args:
        key_manager: Source of keys and sink for outcome reports
        max_attempts: Total attempts per call, across all keys
    """

    def __init__(self, key_manager: KeyManager, max_attempts: int = DEFAULT_MAX_ATTEMPTS):
        self.key_manager = key_manager
        self.max_attempts = max_attempts

    async def execute(self, operation: Operation[T]) -> T:
        """
        Runs ``operation(api_key)`` until it succeeds or the budget is spent.

        Raises:
            NoAvailableKeysError: No key could be selected for an attempt.
            AllCredentialsExhaustedError: Every attempt failed.
        """
        last_exception: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            api_key = await self.key_manager.get_api_key()
            if api_key is None:
                lib_logger.error(
                    f"No API keys available (attempt {attempt}/{self.max_attempts})"
                )
                raise NoAvailableKeysError("No API keys available") from last_exception

            lib_logger.info(
                f"Attempting call with key {mask_credential(api_key)} "
                f"(Attempt {attempt}/{self.max_attempts})"
            )
            try:
                result = await _invoke(operation, api_key)
            except Exception as e:
                last_exception = e
                tier = await self.key_manager.report_error(api_key, e)
                log_failure(api_key, attempt, e, tier)
                continue

            await self.key_manager.report_success(api_key)
            return result

        lib_logger.error(
            f"All {self.max_attempts} attempts failed. Last error: "
            f"{describe_error(last_exception)}"
        )
        raise AllCredentialsExhaustedError(
            self.max_attempts, last_exception
        ) from last_exception

    async def execute_streaming(
        self, operation: StreamOperation
    ) -> AsyncGenerator[Any, None]:
        """
        Establishes a stream with retry and returns a generator over its chunks.

        Providers may open the upstream request lazily, so the handshake is
        only complete once the first chunk has arrived. Everything up to that
        chunk is retried; an error raised later is reported against the key
        that opened the stream and then re-raised.
        """

        async def establish(api_key: str) -> Tuple[str, AsyncIterator[Any], Any]:
            stream = await _invoke(operation, api_key)
            iterator = stream.__aiter__()
            try:
                first = await iterator.__anext__()
            except StopAsyncIteration:
                first = _NO_CHUNK
            except Exception:
                await _aclose(iterator)
                raise
            return api_key, iterator, first

        api_key, iterator, first = await self.execute(establish)
        return self._relay(api_key, iterator, first)

    async def _relay(
        self, api_key: str, iterator: AsyncIterator[Any], first: Any
    ) -> AsyncGenerator[Any, None]:
        try:
            if first is not _NO_CHUNK:
                yield first
            async for chunk in iterator:
                yield chunk
        except Exception as e:
            lib_logger.warning(
                f"Stream with key {mask_credential(api_key)} failed mid-transfer: "
                f"{describe_error(e)}"
            )
            await self.key_manager.report_error(api_key, e)
            raise
        finally:
            await _aclose(iterator)
        lib_logger.info(f"STREAM FINISHED for key {mask_credential(api_key)}")


async def execute_with_retry(
    key_manager: KeyManager,
    operation: Operation[T],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> T:
    """One-shot call with key rotation. See RequestExecutor.execute."""
    return await RequestExecutor(key_manager, max_attempts).execute(operation)


async def stream_with_retry(
    key_manager: KeyManager,
    operation: StreamOperation,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> AsyncGenerator[Any, None]:
    """Streaming call with key rotation. See RequestExecutor.execute_streaming."""
    return await RequestExecutor(key_manager, max_attempts).execute_streaming(operation)
