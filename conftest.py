import asyncio
import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Ensure tests never depend on a developer's .env or shell overrides.
for name in list(os.environ):
    if name.upper().startswith("RESOURCE_KIT_"):
        del os.environ[name]


class LoadRecorder:
    """Load function that records each call and returns ``"value <key>"`` per key."""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    async def __call__(self, keys, tx):
        self.calls.append(list(keys))
        await asyncio.sleep(0)
        return [f"value {key}" for key in keys]


@pytest.fixture
def make_loader():
    return LoadRecorder
