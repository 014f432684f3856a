import pytest

from credential_rotator.diagnostics import run_key_test

from conftest import KEYS


class QuotaError(Exception):
    status_code = 429


@pytest.mark.asyncio
async def test_key_test_stops_at_first_success(make_manager) -> None:
    manager = make_manager()

    async def probe(api_key: str):
        if api_key == KEYS[0]:
            raise QuotaError("You exceeded your current quota")
        return "pong"

    report = await run_key_test(manager, probe)

    results = report["testResults"]
    assert [result["status"] for result in results] == ["error", "success"]
    assert results[0]["error"] == "You exceeded your current quota"
    assert results[1]["keyMask"] == "AIza**************bbbb"
    assert report["summary"] == {
        "totalAttempts": 2,
        "success": True,
        "activeKeys": 2,
        "totalKeys": 3,
    }
    assert report["keyManagerStatus"]["keys"][0]["quotaExhausted"] is True


@pytest.mark.asyncio
async def test_key_test_gives_up_after_max_attempts(make_manager) -> None:
    manager = make_manager()
    probed = []

    async def probe(api_key: str):
        probed.append(api_key)
        raise RuntimeError("Read timed out")

    report = await run_key_test(manager, probe, max_attempts=3)

    assert probed == KEYS
    assert report["summary"]["totalAttempts"] == 3
    assert report["summary"]["success"] is False
    assert all(result["status"] == "error" for result in report["testResults"])


@pytest.mark.asyncio
async def test_key_test_with_no_keys(make_manager) -> None:
    manager = make_manager(keys=[])

    async def probe(api_key: str):
        raise AssertionError("probe must not run without keys")

    report = await run_key_test(manager, probe)

    assert report["testResults"] == [
        {"attempt": 1, "status": "error", "message": "No API key available"}
    ]
    assert report["summary"]["totalAttempts"] == 0
    assert report["summary"]["success"] is False
