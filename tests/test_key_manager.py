import asyncio
import json

import pytest

from credential_rotator import KeyManager
from credential_rotator.types import FailureTier

from conftest import KEYS


@pytest.mark.asyncio
async def test_round_robin_through_manager(make_manager) -> None:
    manager = make_manager()

    picks = [await manager.get_api_key() for _ in KEYS]

    assert picks == KEYS


@pytest.mark.asyncio
async def test_empty_manager_never_raises(make_manager) -> None:
    manager = make_manager(keys=[])

    assert await manager.get_api_key() is None
    assert await manager.report_error("anything", Exception("boom")) is None
    status = await manager.get_status()
    assert status == {"totalKeys": 0, "activeKeys": 0, "currentIndex": 0, "keys": []}


@pytest.mark.asyncio
async def test_third_transient_failure_deactivates_key(make_manager) -> None:
    manager = make_manager()
    key = KEYS[0]

    for _ in range(2):
        assert await manager.report_error(key, Exception("503 overloaded")) == FailureTier.TRANSIENT
    assert manager.pool.find(key).active is True

    await manager.report_error(key, Exception("503 overloaded"))
    assert manager.pool.find(key).active is False


@pytest.mark.asyncio
async def test_report_error_for_unknown_key_changes_nothing(make_manager) -> None:
    manager = make_manager()

    assert await manager.report_error("not-in-the-pool", {"code": 429}) is None
    assert all(record.error_count == 0 for record in manager.pool)


@pytest.mark.asyncio
async def test_reset_key_restores_permanently_suspended_key(make_manager) -> None:
    manager = make_manager(keys=KEYS[:1])
    await manager.report_error(KEYS[0], {"code": 403})
    assert await manager.get_api_key() is None

    assert await manager.reset_key(0) is True

    assert await manager.get_api_key() == KEYS[0]


@pytest.mark.asyncio
async def test_reset_key_by_secret_and_unknown_targets(make_manager) -> None:
    manager = make_manager()
    await manager.report_error(KEYS[1], {"code": 401})

    assert await manager.reset_key(KEYS[1]) is True
    assert manager.pool.find(KEYS[1]).active is True
    assert await manager.reset_key(7) is False
    assert await manager.reset_key(-1) is False
    assert await manager.reset_key("not-in-the-pool") is False


@pytest.mark.asyncio
async def test_status_masks_every_secret(make_manager, clock) -> None:
    manager = make_manager()
    await manager.get_api_key()
    await manager.report_error(KEYS[1], Exception("Quota exceeded"))

    status = await manager.get_status()

    assert status["totalKeys"] == 3
    assert status["activeKeys"] == 2
    assert status["currentIndex"] == 1
    first, second, _ = status["keys"]
    assert first["maskedKey"] == "AIza**************aaaa"
    assert first["lastUsed"] is not None
    assert first["lastError"] is None
    assert second["isActive"] is False
    assert second["quotaExhausted"] is True
    assert second["errorCount"] == 1
    assert second["lastError"].startswith("2023-11-14T22:13:20")

    dumped = json.dumps(status)
    for secret in KEYS:
        assert secret not in dumped


@pytest.mark.asyncio
async def test_selection_and_reports_wait_for_the_pool_lock(make_manager) -> None:
    manager = make_manager()

    async with manager.pool.lock:
        pick = asyncio.create_task(manager.get_api_key())
        report = asyncio.create_task(manager.report_error(KEYS[0], Exception("timeout")))
        await asyncio.sleep(0)
        assert not pick.done()
        assert not report.done()
        assert manager.pool.current_index == 0

    assert await pick == KEYS[0]
    await report
    assert manager.pool.current_index == 1
    assert manager.pool.find(KEYS[0]).error_count == 1


@pytest.mark.asyncio
async def test_interleaved_calls_rotate_through_distinct_keys(make_manager) -> None:
    manager = make_manager(max_error_threshold=2)
    release = asyncio.Event()
    started = []

    async def call() -> str:
        api_key = await manager.get_api_key()
        started.append(api_key)
        await release.wait()
        await manager.report_error(api_key, Exception("Read timed out"))
        return api_key

    tasks = [asyncio.create_task(call()) for _ in range(4)]
    while len(started) < 4:
        await asyncio.sleep(0)
    release.set()
    picks = await asyncio.gather(*tasks)

    assert picks == [KEYS[0], KEYS[1], KEYS[2], KEYS[0]]
    assert manager.pool.find(KEYS[0]).error_count == 2
    assert manager.pool.find(KEYS[0]).active is False
    assert manager.pool.find(KEYS[1]).active is True


@pytest.mark.asyncio
async def test_from_env_reads_keys_and_tunables() -> None:
    environ = {
        "KEY_ROTATION_ENV_NAME": "PROVIDER_API_KEY",
        "PROVIDER_API_KEY": "provider-key-one-111",
        "PROVIDER_API_KEY_3": "provider-key-three-333",
        "KEY_ROTATION_ERROR_THRESHOLD": "1",
    }

    manager = KeyManager.from_env(environ)

    assert [record.secret for record in manager.pool] == [
        "provider-key-one-111",
        "provider-key-three-333",
    ]
    await manager.report_error("provider-key-one-111", Exception("timeout"))
    assert manager.pool.find("provider-key-one-111").active is False


def test_record_repr_hides_secret() -> None:
    manager = KeyManager([KEYS[0]])

    assert KEYS[0] not in repr(manager.pool.record_at(0))
