from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from packledger.config import config

_connect_args = {"check_same_thread": False} if config.SQLALCHEMY_DATABASE_URI.startswith("sqlite") else {}

engine = create_engine(config.SQLALCHEMY_DATABASE_URI, connect_args=_connect_args)

# Создаем сессию для работы с базой данных
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Базовый класс для всех моделей
Base = declarative_base()


@contextmanager
def transactional(db: Session):
    """
    A context manager for handling database transactions.

    Commits when the block finishes and rolls back on any exception, so a
    failed mutation never leaves a partial write behind.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
