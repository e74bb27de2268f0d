import os
import sys
from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest


# Ensure the repository root is on sys.path for `from replay_chess...` imports
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """Clock that advances one second per reading, so visit order is strict."""
    state = {"now": datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)}

    def tick() -> datetime:
        state["now"] += timedelta(seconds=1)
        return state["now"]

    return tick
