import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from credential_rotator import CooldownPolicy, KeyManager


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


KEYS = [
    "AIzaSyKEY-ONE-aaaaaaaa",
    "AIzaSyKEY-TWO-bbbbbbbb",
    "AIzaSyKEY-THREE-cccccc",
]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_manager(clock: FakeClock):
    def factory(keys=None, **policy_kwargs) -> KeyManager:
        return KeyManager(
            list(KEYS if keys is None else keys),
            policy=CooldownPolicy(**policy_kwargs),
            clock=clock,
        )

    return factory
