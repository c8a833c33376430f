from __future__ import annotations

from html import escape

import asyncpg
from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message

from splitbill.db.models import BillEvent
from splitbill.db.repo import BillEventNotFoundError, get_global_repository
from splitbill.handlers.common import command_args, currency, render_state
from splitbill.keyboards import bill_actions_keyboard, bill_list_keyboard, confirm_delete_keyboard
from splitbill.logging import get_logger
from splitbill.services.render import format_bill_list
from splitbill.state import BalanceSummary, state

bills_router = Router()
log = get_logger(__name__)

STORAGE_ERROR = "Saved bills are unavailable right now. Please try again later."


async def build_bills_view() -> tuple[str, InlineKeyboardMarkup]:
    events = await get_global_repository().get_all()
    return format_bill_list(events, currency()), bill_list_keyboard(events)


@bills_router.message(Command("save"))
async def cmd_save(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    current = state.get(user.id)
    if not isinstance(current, BalanceSummary):
        await message.answer("Open the summary with /summary before saving.")
        return
    if current.event_id is not None:
        await message.answer("This bill is already saved. Use /rename to change its name.")
        return

    name = command_args(message)
    if not name:
        await message.answer("Usage: /save name")
        return

    event = BillEvent.create(name, current.receipt_with_splitting)
    try:
        await get_global_repository().save(event)
    except (asyncpg.PostgresError, OSError) as exc:
        log.error("bill_event.save_failed", user_id=user.id, error=str(exc))
        await message.answer("❌ Could not save the bill. Please try again later.")
        return

    state.view_event(user.id, event)
    await message.answer(f"✅ Saved as <b>{escape(name)}</b>. See all saved bills with /bills.")


@bills_router.message(Command("bills"))
async def cmd_bills(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    try:
        text, keyboard = await build_bills_view()
    except (asyncpg.PostgresError, OSError) as exc:
        log.error("bill_event.list_failed", user_id=user.id, error=str(exc))
        await message.answer("❌ Could not load saved bills.")
        return
    await message.answer(text, reply_markup=keyboard)


@bills_router.message(Command("rename"))
async def cmd_rename(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    event_id = state.viewed_event_id(user.id)
    if event_id is None:
        await message.answer("Open a saved bill from /bills first.")
        return

    name = command_args(message)
    if not name:
        await message.answer("Usage: /rename name")
        return

    try:
        await get_global_repository().update_name(event_id, name)
    except BillEventNotFoundError:
        state.reset(user.id)
        await message.answer("That bill no longer exists.")
        return

    state.set_viewed_event_name(user.id, name)
    await message.answer(f"✏️ Renamed to <b>{escape(name)}</b>.")


@bills_router.callback_query(F.data == "bill_list")
async def cb_bill_list(callback: CallbackQuery) -> None:
    if not callback.message:
        return
    try:
        text, keyboard = await build_bills_view()
    except (asyncpg.PostgresError, OSError) as exc:
        log.error("bill_event.list_failed", error=str(exc))
        await callback.answer(STORAGE_ERROR, show_alert=True)
        return
    await callback.answer()
    await callback.message.edit_text(text, reply_markup=keyboard)


@bills_router.callback_query(F.data.startswith("bill_open:"))
async def cb_bill_open(callback: CallbackQuery) -> None:
    user = callback.from_user
    if not user or not callback.message:
        return
    _, event_id = callback.data.split(":", 1)

    try:
        event = await get_global_repository().get_by_id(event_id)
    except (asyncpg.PostgresError, OSError, ValueError) as exc:
        log.error("bill_event.open_failed", event_id=event_id, error=str(exc))
        await callback.answer(STORAGE_ERROR, show_alert=True)
        return
    if event is None:
        await callback.answer("That bill no longer exists.", show_alert=True)
        return

    value = state.view_event(user.id, event)
    await callback.answer()
    await callback.message.answer(
        render_state(value, title=event.name),
        reply_markup=bill_actions_keyboard(event.id),
    )


@bills_router.callback_query(F.data.startswith("bill_delete:"))
async def cb_bill_delete(callback: CallbackQuery) -> None:
    if not callback.message:
        return
    _, event_id = callback.data.split(":", 1)
    await callback.answer()
    await callback.message.edit_reply_markup(reply_markup=confirm_delete_keyboard(event_id))


@bills_router.callback_query(F.data.startswith("bill_delete_yes:"))
async def cb_bill_delete_yes(callback: CallbackQuery) -> None:
    user = callback.from_user
    if not user or not callback.message:
        return
    _, event_id = callback.data.split(":", 1)

    try:
        await get_global_repository().delete(event_id)
        text, keyboard = await build_bills_view()
    except (asyncpg.PostgresError, OSError) as exc:
        log.error("bill_event.delete_failed", event_id=event_id, error=str(exc))
        await callback.answer(STORAGE_ERROR, show_alert=True)
        return

    if state.viewed_event_id(user.id) == event_id:
        state.reset(user.id)
    await callback.answer("Bill deleted")
    await callback.message.answer(text, reply_markup=keyboard)

