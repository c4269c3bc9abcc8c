import pytest

from couchsync import SyncAdapter
from couchsync.config import Config
from couchsync.db import MemoryDatabase


class Recorder:
    """Collects the results handed to sync callbacks"""

    def __init__(self):
        self.successes = []
        self.errors = []

    def success(self, result):
        self.successes.append(result)

    def error(self, err):
        self.errors.append(err)

    def options(self, **extra):
        return {'success': self.success, 'error': self.error, **extra}

    @property
    def calls(self):
        return len(self.successes) + len(self.errors)


@pytest.fixture
def db():
    return MemoryDatabase('couchsync-test')


@pytest.fixture
def adapter(db):
    return SyncAdapter(database=db)


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture(autouse=True)
def reset_config():
    yield
    Config.reset()
