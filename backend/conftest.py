"""Root conftest: test environment, structlog routing, and account fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import structlog
from dotenv import load_dotenv

from accounts.auth.password import SimpleHasher
from accounts.auth.service import CredentialService
from accounts.db import Database, SqliteUserStore
from accounts.logging import redact_secrets

if TYPE_CHECKING:
    from collections.abc import Iterator

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# Route structlog through stdlib logging so caplog sees account events.
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=False,
)


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Prevent context leaking between tests."""
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def database(tmp_path: Path) -> Iterator[Database]:
    db = Database(tmp_path / "accounts.db")
    db.connect()
    yield db
    db.close()


@pytest.fixture
def user_store(database: Database) -> SqliteUserStore:
    return SqliteUserStore(database)


@pytest.fixture
def credential_service(user_store: SqliteUserStore) -> CredentialService:
    return CredentialService(user_store, password_hasher=SimpleHasher())
