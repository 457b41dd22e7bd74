import pytest

import config
from db import dispose_db, get_engine, get_session, init_db
from tests.factories import LocaleFactory, Session


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'langmap-test.sqlite'}"


@pytest.fixture(autouse=True)
def _database(db_url):
    """Fresh SQLite file per test, shared by the factories and the code under test."""
    init_db(db_url)
    Session.configure(bind=get_engine())
    yield
    Session.remove()
    dispose_db()


@pytest.fixture
def locale_en():
    """The default locale; most imports need it to exist."""
    return LocaleFactory(code=config.DEFAULT_LOCALE, name="English", is_default=True)


@pytest.fixture
def db_session():
    """A session for assertions, independent of the factories' session."""
    session = get_session()
    yield session
    session.close()


@pytest.fixture
def app(db_url):
    """Return the Flask app bound to the per-test database."""
    from main import create_app

    previous = get_engine()
    app = create_app(db_url)
    previous.dispose()
    Session.remove()
    Session.configure(bind=get_engine())
    return app


@pytest.fixture
def client(app):
    """Return a Flask test client."""
    return app.test_client()
