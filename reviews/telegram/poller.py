import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ..errors import NotificationError
from .bot import TelegramBot

logger = logging.getLogger(__name__)

CallbackHandler = Callable[[dict], Awaitable[object]]


class UpdatePoller:
    """Long-polls getUpdates and hands every callback_query to the handler."""

    def __init__(
            self,
            bot: TelegramBot,
            on_callback: CallbackHandler,
            poll_timeout: int = 30,
            error_pause: float = 5.0
    ):
        self.bot = bot
        self.on_callback = on_callback
        self.poll_timeout = poll_timeout
        self.error_pause = error_pause
        self.offset: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    async def poll_once(self) -> int:
        updates = await self.bot.get_updates(offset=self.offset, timeout=self.poll_timeout)
        for update in updates:
            # Telegram redelivers everything below the offset, so advance past each update first
            self.offset = update["update_id"] + 1
            callback_query = update.get("callback_query")
            if callback_query:
                await self.on_callback(callback_query)
        return len(updates)

    async def run(self):
        logger.info("Telegram polling started")
        while True:
            try:
                await self.poll_once()
            except NotificationError as e:
                logger.error(f"Polling failed: {e}")
                await asyncio.sleep(self.error_pause)
            except Exception:
                logger.exception("Unexpected error while handling updates")
                await asyncio.sleep(self.error_pause)

    def start(self) -> asyncio.Task:
        self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Telegram polling stopped")
