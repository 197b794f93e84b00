from types import SimpleNamespace

from app.core import database
from app.core.config import settings
from app.services import pickups, redemption


class RecordingSession:
    def __init__(self, dialect_name):
        self.statements = []
        self._bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect_name))

    def get_bind(self):
        return self._bind

    def execute(self, statement):
        self.statements.append(str(statement))


def test_lock_timeout_is_set_per_transaction_on_postgres():
    session = RecordingSession("postgresql")

    database.apply_lock_timeout(session)

    assert session.statements == [f"SET LOCAL lock_timeout = '{settings.LOCK_TIMEOUT_MS}ms'"]


def test_lock_timeout_is_skipped_on_sqlite(db):
    session = RecordingSession("sqlite")

    database.apply_lock_timeout(session)
    database.apply_lock_timeout(db)

    assert session.statements == []


def test_write_paths_share_one_lock_timeout_helper():
    assert redemption.apply_lock_timeout is database.apply_lock_timeout
    assert pickups.apply_lock_timeout is database.apply_lock_timeout
