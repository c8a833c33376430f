from __future__ import annotations

from aiogram.types import Message

from splitbill.config import get_settings
from splitbill.services.render import format_receipt, format_splitting, format_summary
from splitbill.state import BalanceSummary, Editing, Error, Initial, Loading, SessionState, Splitting, state


def currency() -> str:
    return get_settings().currency_symbol


def command_args(message: Message) -> str:
    if not message.text:
        return ""
    parts = message.text.split(maxsplit=1)
    return parts[1].strip() if len(parts) > 1 else ""


def render_state(value: SessionState, title: str | None = None) -> str:
    symbol = currency()
    if isinstance(value, Editing):
        return format_receipt(value.receipt, symbol) + "\n\nWhen the totals match, use /split."
    if isinstance(value, Splitting):
        return format_splitting(value.receipt_with_splitting, symbol)
    if isinstance(value, BalanceSummary):
        receipt = value.receipt_with_splitting
        return format_summary(
            receipt.bill_split_summary,
            original_total=receipt.editable_receipt.total,
            symbol=symbol,
            title=title,
        )
    if isinstance(value, Error):
        return f"❌ {value.message}\n\nSend another photo to try again."
    if isinstance(value, Loading):
        return "⏳ Reading the receipt…"
    return "Send me a photo of a receipt, or use /new to type one in."


async def reply_with_state(message: Message, user_id: int) -> None:
    value = state.get(user_id)
    title = state.viewed_event_name(user_id) if isinstance(value, BalanceSummary) else None
    await message.answer(render_state(value, title=title))


def wrong_stage(value: SessionState) -> str:
    if isinstance(value, Initial):
        return "There is no receipt yet. Send a photo or use /new."
    if isinstance(value, Editing):
        return "That works in splitting mode. Use /split first."
    if isinstance(value, Splitting):
        return "That works while editing the receipt. Use /done to leave splitting mode."
    if isinstance(value, BalanceSummary):
        return "You are looking at the summary. Use /back to change assignments."
    return "Not available right now."
