import pytest

from hello_db.database import DatabasePool
from hello_db.settings import Settings


@pytest.fixture
def sqlite_url(tmp_path):
    return f'sqlite:///{tmp_path / "hello.db"}'


@pytest.fixture
def make_settings(sqlite_url):
    def _make(**overrides) -> Settings:
        values = {
            'DATABASE_URL': sqlite_url,
            'DATABASE_POOL_SIZE': 5,
            'DATABASE_POOL_TIMEOUT': 1,
            'HEALTHCHECK_TIMEOUT_SECONDS': 2.0,
            'HEALTHCHECK_WORKERS': 5,
            'API_SENTRY_DSN': None,
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def database_pool(make_settings):
    pool = DatabasePool(make_settings())
    pool.initialize()
    yield pool
    pool.dispose()
