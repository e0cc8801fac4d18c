import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

from reviews.config import Settings
from reviews.database import Database
from reviews.errors import NotificationError
from reviews.main import create_app
from reviews.models import Review

CHAT_ID = "-100123"


class FakeBot:
    """Stands in for TelegramBot and records every call."""

    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []
        self.edited = []
        self.answered = []
        self.updates = []
        self.closed = False
        self._message_id = 0

    def _check(self, method):
        if self.fail:
            raise NotificationError(f"{method} rejected with 400: Bad Request", method=method, status_code=400)

    async def send_message(self, chat_id, text, parse_mode=None, reply_markup=None):
        self._check("sendMessage")
        self._message_id += 1
        self.sent.append({
            "chat_id": chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "reply_markup": reply_markup,
        })
        return {"message_id": self._message_id, "chat": {"id": chat_id}}

    async def edit_message_text(self, chat_id, message_id, text):
        self._check("editMessageText")
        self.edited.append({"chat_id": chat_id, "message_id": message_id, "text": text})
        return True

    async def answer_callback_query(self, callback_query_id, text=None):
        self.answered.append({"callback_query_id": callback_query_id, "text": text})
        return True

    async def get_updates(self, offset=None, timeout=30):
        # a real long poll blocks, so give the event loop a turn
        await asyncio.sleep(0.01)
        self._check("getUpdates")
        updates, self.updates = self.updates, []
        return updates

    async def delete_webhook(self):
        return True

    async def close(self):
        self.closed = True


def callback_query(data, query_id="cb-1", message_id=42, chat_id=CHAT_ID):
    return {
        "id": query_id,
        "data": data,
        "message": {"message_id": message_id, "chat": {"id": chat_id}},
    }


@pytest.fixture()
def settings(tmp_path):
    return Settings(
        bot_token="123:test-token",
        chat_id=CHAT_ID,
        database_url=f"sqlite:///{tmp_path / 'reviews.db'}",
        telegram_polling=False,
        cors_origins=["*"],
    )


@pytest.fixture()
def database(settings):
    db = Database(settings.database_url, max_retries=1, retry_delay=0)
    db.connect()
    yield db
    db.dispose()


@pytest.fixture()
def session(database):
    with Session(database.engine) as session:
        yield session


@pytest.fixture()
def bot():
    return FakeBot()


@pytest.fixture()
def client(settings, database, bot):
    app = create_app(settings=settings, database=database, bot=bot)
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def stored_reviews(database):
    def _all():
        with Session(database.engine) as session:
            return session.exec(select(Review).order_by(Review.id)).all()

    return _all
