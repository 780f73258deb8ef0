import os
import sys

import pytest

repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)


@pytest.fixture(autouse=True)
def _reset_guard_state():
    from roleguard.access.testmode import TEST_MODE
    from roleguard.common.metrics import REG

    TEST_MODE.disable()
    REG.reset()
    yield
    TEST_MODE.disable()
    REG.reset()


@pytest.fixture
def test_mode():
    from roleguard.access.testmode import TEST_MODE

    TEST_MODE.enable()
    yield TEST_MODE
    TEST_MODE.disable()


@pytest.fixture
def clock():
    ticks = {"now": 1_700_000_000_000}

    def _now() -> int:
        ticks["now"] += 1
        return ticks["now"]

    return _now
