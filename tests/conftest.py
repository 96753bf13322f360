import os

# Конфигурация читается при импорте packledger, поэтому окружение задаём до импортов приложения
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_pack_ledger.db")
os.environ.setdefault("ENVIRONMENT", "dev")
os.environ.setdefault("CRON_API_KEY", "test-cron-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from packledger.main import app
from packledger.database import Base
from packledger.dependencies import get_db
from packledger.auth.jwt_handler import create_access_token

# URL для тестовой базы данных (SQLite-файл, чтобы несколько потоков видели одни данные)
DATABASE_URL = "sqlite:///./test_pack_ledger.db"


@pytest.fixture(scope="function")
def engine():
    """
    Движок тестовой базы: таблицы создаются перед тестом и удаляются после.
    """
    if os.path.exists("test_pack_ledger.db"):
        os.remove("test_pack_ledger.db")

    engine = create_engine(DATABASE_URL, connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    """
    Фабрика независимых сессий - для тестов с параллельными терминалами.
    """
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """
    Фикстура для работы с одной общей сессией базы данных внутри каждого теста.
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    """
    Тестовый клиент FastAPI с переопределением зависимости `get_db` для работы с тестовой базой данных.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.pop(get_db, None)


@pytest.fixture
def auth_headers():
    """
    dev_token принимается при ENVIRONMENT=dev и даёт роль ADMIN с id=1.
    """
    return {"Authorization": "Bearer dev_token"}


@pytest.fixture
def staff_headers():
    token = create_access_token({"sub": "desk@example.com", "id": 7, "role": "STAFF"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def client_role_headers():
    token = create_access_token({"sub": "member@example.com", "id": 42, "role": "CLIENT"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def api_key_headers():
    return {"X-API-Key": "test-cron-key"}


# Импортируем фикстуры для пакетов
from .fixtures.pack_fixtures import (
    test_member,
    test_second_member,
    test_pack_template,
    test_unlimited_pack_template,
    test_inactive_pack_template,
    test_pack_assignment,
    test_three_session_assignment,
    test_paused_assignment,
    test_expired_assignment,
    test_exhausted_assignment,
)
