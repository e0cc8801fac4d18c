"""
Review relay - server entry point.

    python main.py

Reads HOST and PORT from the environment (or .env) and serves reviews.main:app.
"""

import uvicorn

from reviews.config import get_settings


def main():
    settings = get_settings()
    uvicorn.run(
        "reviews.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
