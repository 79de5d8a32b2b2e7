import logging

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
    wait_fixed,
)

from medmeet.core import config

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    connect_args = {'check_same_thread': False} if database_url.startswith('sqlite') else {}
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def wait_for_database(
    bind: Engine | None = None,
    retry_seconds: float | None = None,
    max_attempts: int | None = None,
) -> None:
    """Block until the database accepts a connection.

    Retries on a fixed delay. ``max_attempts`` of 0 retries forever; when a
    limit is set the last ``OperationalError`` is re-raised.
    """
    bind = bind or engine
    delay = config.DB_CONNECT_RETRY_SECONDS if retry_seconds is None else retry_seconds
    attempts = config.DB_CONNECT_MAX_ATTEMPTS if max_attempts is None else max_attempts

    retrying = Retrying(
        stop=stop_after_attempt(attempts) if attempts > 0 else stop_never,
        wait=wait_fixed(delay),
        retry=retry_if_exception_type(OperationalError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    for attempt in retrying:
        with attempt:
            with bind.connect() as connection:
                connection.execute(text('SELECT 1'))

    logger.info('Database connection established.')
