from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.engine import make_url
from sqlalchemy import text
from typing import Iterator, Optional
import time
import logging

from ..config import normalize_database_url
from ..models import Review  # noqa: F401  registers the table on SQLModel.metadata

logger = logging.getLogger(__name__)


class Database:
    """Owns the engine for the process: connect at startup, hand out sessions, dispose at shutdown."""

    def __init__(
            self,
            url: str,
            sslmode: Optional[str] = None,
            max_retries: int = 10,
            retry_delay: float = 3,
            echo: bool = False
    ):
        self.url = normalize_database_url(url)
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.engine = create_engine(
            self.url,
            pool_pre_ping=True,
            connect_args=self._connect_args(sslmode),
            echo=echo
        )

    def _connect_args(self, sslmode: Optional[str]) -> dict:
        backend = make_url(self.url).get_backend_name()
        if backend == "sqlite":
            # sessions are opened in the threadpool FastAPI runs sync dependencies on
            return {"check_same_thread": False}
        if backend == "postgresql":
            args = {"connect_timeout": 10}
            if sslmode:
                args["sslmode"] = sslmode
            return args
        return {}

    def connect(self):
        for attempt in range(1, self.max_retries + 1):
            try:
                logger.info(f"Attempt {attempt}/{self.max_retries}: Connecting to DB...")
                with Session(self.engine) as session:
                    session.execute(text("SELECT 1"))
                SQLModel.metadata.create_all(self.engine)
                logger.info(f"Connected to {self.engine.dialect.name}, table ready")
                return
            except Exception as e:
                logger.error(f"Connection failed: {type(e).__name__}: {str(e)}")
                if attempt == self.max_retries:
                    raise RuntimeError(f"Failed to connect to DB after {self.max_retries} attempts")
                time.sleep(self.retry_delay)

    def session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    def dispose(self):
        self.engine.dispose()
        logger.info("Database connections closed")
