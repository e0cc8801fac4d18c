"""Approve/reject decisions arriving as Telegram inline keyboard callbacks.

A moderation prompt carries two buttons whose callback data is
``approve_<id>`` or ``reject_<id>``. Decisions only ever move a review out of
the pending state: approve flips ``approved`` to true, reject deletes the row.
A decision for a review that is already approved or gone changes nothing and
is reported as such.
"""

import enum
import logging
import re
from dataclasses import dataclass

from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session

from .database import Database, crud
from .errors import ActionDecodeError, NotificationError, StoreError
from .models import Review
from .schemas import CallbackQuery
from .telegram.bot import TelegramBot
from .telegram.messages import moderation_keyboard

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"^(?P<kind>[a-z]+)_(?P<id>[1-9][0-9]*)$")


class ActionKind(enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


@dataclass(frozen=True)
class ModerationAction:
    kind: ActionKind
    review_id: int

    def encode(self) -> str:
        return f"{self.kind.value}_{self.review_id}"


class ModerationOutcome(enum.Enum):
    APPROVED = "✅ Review approved"
    REJECTED = "❌ Review rejected"
    ALREADY_RESOLVED = "ℹ️ Review already processed"
    NOT_FOUND = "⚠️ Review not found"

    @property
    def message(self) -> str:
        return self.value


def decode_action(token) -> ModerationAction:
    if not isinstance(token, str):
        raise ActionDecodeError(f"Callback data must be a string, got {type(token).__name__}")
    match = _TOKEN_RE.match(token)
    if not match:
        raise ActionDecodeError(f"Malformed callback data: {token!r}")
    try:
        kind = ActionKind(match.group("kind"))
    except ValueError:
        raise ActionDecodeError(f"Unknown moderation action: {match.group('kind')!r}")
    return ModerationAction(kind=kind, review_id=int(match.group("id")))


def apply_action(session: Session, action: ModerationAction) -> ModerationOutcome:
    if action.kind is ActionKind.APPROVE:
        changed = crud.approve_pending_review(session, action.review_id)
        success = ModerationOutcome.APPROVED
    else:
        changed = crud.delete_pending_review(session, action.review_id)
        success = ModerationOutcome.REJECTED

    if changed:
        return success

    # Nothing pending under this id: tell a second decision apart from a stale button
    session.expire_all()
    review = crud.get_review(session, action.review_id)
    if review is None:
        return ModerationOutcome.NOT_FOUND
    return ModerationOutcome.ALREADY_RESOLVED


class ModerationHandler:
    """Runs one callback query through decode, store mutation, message edit and answer."""

    def __init__(self, database: Database, bot: TelegramBot):
        self.database = database
        self.bot = bot

    async def handle_callback(self, callback_query):
        try:
            query = CallbackQuery.model_validate(callback_query)
        except PydanticValidationError as e:
            logger.warning(f"Ignoring malformed callback query: {e.error_count()} invalid field(s)")
            if isinstance(callback_query, dict) and isinstance(callback_query.get("id"), str):
                await self._answer(callback_query["id"], "Unknown action")
            return None

        query_id = query.id
        chat_id = query.message.chat.id if query.message else None
        message_id = query.message.message_id if query.message else None

        try:
            action = decode_action(query.data)
        except ActionDecodeError as e:
            logger.warning(f"Ignoring callback {query_id}: {e}")
            await self._answer(query_id, "Unknown action")
            return None

        try:
            with Session(self.database.engine) as session:
                outcome = apply_action(session, action)
        except StoreError as e:
            logger.error(f"Callback {query_id} ({action.encode()}) failed: {e}")
            await self._answer(query_id, "Could not save the decision")
            return None

        logger.info(f"Review ID {action.review_id}: {action.kind.value} -> {outcome.name}")

        if chat_id is not None and message_id is not None:
            try:
                await self.bot.edit_message_text(chat_id, message_id, outcome.message)
            except NotificationError as e:
                logger.error(f"Could not edit moderation message {message_id}: {e}")

        await self._answer(query_id)
        return outcome

    async def _answer(self, query_id, text=None):
        if not query_id:
            return
        try:
            await self.bot.answer_callback_query(query_id, text)
        except NotificationError as e:
            logger.error(f"Could not answer callback {query_id}: {e}")


def pending_review_keyboard(review: Review) -> dict:
    return moderation_keyboard(
        ModerationAction(ActionKind.APPROVE, review.id).encode(),
        ModerationAction(ActionKind.REJECT, review.id).encode()
    )
