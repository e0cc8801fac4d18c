from .bot import TelegramBot
from .poller import UpdatePoller

__all__ = ["TelegramBot", "UpdatePoller"]
