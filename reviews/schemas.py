from pydantic import BaseModel, ConfigDict, field_validator
from typing import Optional


def _require(value):
    # Empty strings and a zero rating count as missing
    if isinstance(value, str):
        value = value.strip()
    if not value:
        raise ValueError("field is required")
    return value


class FormSubmission(BaseModel):
    # phone numbers and names often arrive as JSON numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str
    phone: str
    message: Optional[str] = None

    @field_validator("name", "phone")
    @classmethod
    def required(cls, value):
        return _require(value)


class ReviewSubmission(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str
    text: str
    rating: int

    @field_validator("name", "text", "rating")
    @classmethod
    def required(cls, value):
        return _require(value)


class SeedReview(BaseModel):
    name: str
    text: str
    rating: int
    approved: Optional[bool] = False


class SuccessResponse(BaseModel):
    success: bool = True


class SeedResponse(SuccessResponse):
    inserted: int


class ErrorResponse(BaseModel):
    error: str


class TelegramChat(BaseModel):
    id: int | str


class TelegramMessage(BaseModel):
    message_id: int
    chat: TelegramChat


class CallbackQuery(BaseModel):
    """The parts of a Telegram callback_query the moderation handler reads."""

    id: str
    data: Optional[str] = None
    message: Optional[TelegramMessage] = None
