import pytest
from fastapi.testclient import TestClient
from sqlalchemy import inspect

from conftest import FakeBot
from reviews.config import Settings, normalize_database_url
from reviews.database import Database
from reviews.main import create_app


class TestSettings:
    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("BOT_TOKEN", "abc")
        monkeypatch.setenv("CHAT_ID", "-1")
        monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db:5432/reviews")
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("TELEGRAM_POLLING", "false")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")

        settings = Settings()

        assert settings.bot_token == "abc"
        assert settings.chat_id == "-1"
        assert settings.database_url == "postgresql://u:p@db:5432/reviews"
        assert settings.port == 8080
        assert settings.telegram_polling is False
        assert settings.cors_origins == ["https://a.example", "https://b.example"]
        assert settings.validate() == []

    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "PORT", "TELEGRAM_POLLING", "CORS_ORIGINS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.database_url == "sqlite:///./reviews.db"
        assert settings.port == 3000
        assert settings.telegram_polling is True
        assert settings.cors_origins == ["*"]

    def test_unknown_log_level_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "verbose")

        assert Settings().log_level == "INFO"

    def test_log_level_is_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert Settings().log_level == "DEBUG"

    def test_validate_lists_missing_credentials(self):
        assert Settings(bot_token="", chat_id="").validate() == ["BOT_TOKEN", "CHAT_ID"]

    def test_normalize_database_url(self):
        assert normalize_database_url("postgres://x/y") == "postgresql://x/y"
        assert normalize_database_url("sqlite:///./reviews.db") == "sqlite:///./reviews.db"


class TestStartup:
    def test_missing_credentials_abort_startup(self, settings, database):
        broken = Settings(
            bot_token="",
            chat_id="",
            database_url=settings.database_url,
            telegram_polling=False,
        )
        app = create_app(settings=broken, database=database, bot=FakeBot())

        with pytest.raises(RuntimeError):
            with TestClient(app):
                pass

    def test_shutdown_closes_bot(self, settings, database):
        bot = FakeBot()
        app = create_app(settings=settings, database=database, bot=bot)

        with TestClient(app):
            assert not bot.closed

        assert bot.closed

    def test_polling_starts_with_lifespan(self, settings, database):
        polling = Settings(
            bot_token=settings.bot_token,
            chat_id=settings.chat_id,
            database_url=settings.database_url,
            telegram_polling=True,
        )
        bot = FakeBot()
        app = create_app(settings=polling, database=database, bot=bot)

        with TestClient(app) as client:
            assert client.get("/reviews").status_code == 200

        assert bot.closed

    def test_cors_headers(self, client):
        response = client.get("/reviews", headers={"Origin": "https://site.example"})

        assert response.headers["access-control-allow-origin"] == "*"


class TestDatabase:
    def test_connect_gives_up_after_retries(self, tmp_path):
        db = Database(f"sqlite:///{tmp_path / 'missing' / 'reviews.db'}", max_retries=2, retry_delay=0)

        with pytest.raises(RuntimeError):
            db.connect()

    def test_connect_creates_table(self, database):
        assert "reviews" in inspect(database.engine).get_table_names()
