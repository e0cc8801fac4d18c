from typing import Optional

PARSE_MODE = "Markdown"

APPROVE_BUTTON = "✅ Approve"
REJECT_BUTTON = "❌ Reject"

_MARKDOWN_SPECIAL = ("_", "*", "`", "[")


def escape_markdown(value) -> str:
    text = str(value)
    for char in _MARKDOWN_SPECIAL:
        text = text.replace(char, "\\" + char)
    return text


def form_message(name: str, phone: str, message: Optional[str] = None) -> str:
    return (
        "📩 *New request from the website*\n"
        f"👤 Name: {escape_markdown(name)}\n"
        f"📞 Phone: {escape_markdown(phone)}\n"
        f"💬 Message: {escape_markdown(message) if message else 'None'}"
    )


def review_message(name: str, text: str, rating: int) -> str:
    return (
        "📝 *New review*\n"
        f"👤 {escape_markdown(name)}\n"
        f"⭐ {escape_markdown(rating)}\n"
        f"💬 {escape_markdown(text)}"
    )


def moderation_keyboard(approve_token: str, reject_token: str) -> dict:
    return {
        "inline_keyboard": [[
            {"text": APPROVE_BUTTON, "callback_data": approve_token},
            {"text": REJECT_BUTTON, "callback_data": reject_token}
        ]]
    }
