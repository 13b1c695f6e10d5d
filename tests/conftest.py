"""
Shared pytest configuration.

Puts the project root on sys.path so that `import sessionstore` and
`from tests.utils import ...` work without installing the package, and
provides store/service fixtures wired to an in-memory Redis double and a
controllable clock.
"""

import sys
from pathlib import Path

import pytest

# Ensure project root is importable for test modules.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from sessionstore.services import SessionServices  # noqa: E402
from sessionstore.store import SessionStore  # noqa: E402
from tests.utils import FakeClock, InMemoryRedis  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def redis(clock: FakeClock) -> InMemoryRedis:
    return InMemoryRedis(clock)


@pytest.fixture
def store(redis: InMemoryRedis) -> SessionStore:
    return SessionStore(redis, timeout_seconds=1.0)


@pytest.fixture
def services(store: SessionStore, clock: FakeClock) -> SessionServices:
    return SessionServices.from_store(store, clock=clock)
