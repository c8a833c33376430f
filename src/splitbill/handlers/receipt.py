from __future__ import annotations

from aiogram import F, Router
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command
from aiogram.types import Message

from splitbill.db.models import ReceiptParseResult
from splitbill.handlers.common import command_args, reply_with_state, wrong_stage
from splitbill.logging import get_logger
from splitbill.services.parsing import ReceiptParseError, get_global_parser
from splitbill.state import Editing, Loading, Splitting, state
from splitbill.utils.parse import parse_amount, parse_item_spec, parse_position

receipt_router = Router()
log = get_logger(__name__)


@receipt_router.message(F.photo)
async def on_photo(message: Message) -> None:
    user = message.from_user
    if not user or not message.photo or not message.bot:
        return

    await message.answer("⏳ Reading the receipt…")
    state.start_loading(user.id)

    try:
        image = await message.bot.download(message.photo[-1])
        data = image.read() if image else b""
        result = await get_global_parser().parse_receipt(data)
    except TelegramAPIError as exc:
        log.warning("receipt.download.failed", user_id=user.id, error=str(exc))
        state.parse_failed(user.id, "Could not download the photo. Please send it again.")
    except ReceiptParseError as exc:
        log.warning("receipt.parse.failed", user_id=user.id, error=str(exc))
        state.parse_failed(user.id, str(exc))
    else:
        state.receipt_parsed(user.id, result)
    finally:
        # Never leave the session stuck in Loading
        if isinstance(state.get(user.id), Loading):
            state.parse_failed(user.id, "")

    await reply_with_state(message, user.id)


@receipt_router.message(Command("new"))
async def cmd_new(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    state.receipt_parsed(user.id, ReceiptParseResult())
    await reply_with_state(message, user.id)


@receipt_router.message(Command("additem"))
async def cmd_additem(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    try:
        item = parse_item_spec(command_args(message))
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /additem name | qty | cost")
        return

    current = state.get(user.id)
    if isinstance(current, Editing):
        state.edit_receipt(user.id, lambda receipt: receipt.add_item(item))
    elif isinstance(current, Splitting):
        state.edit_split(user.id, lambda receipt: receipt.add_receipt_item(item))
    else:
        await message.answer(wrong_stage(current))
        return
    await reply_with_state(message, user.id)


@receipt_router.message(Command("edititem"))
async def cmd_edititem(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    position, _, spec = command_args(message).partition("|")
    try:
        index = parse_position(position)
        item = parse_item_spec(spec)
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /edititem N | name | qty | cost")
        return

    current = state.get(user.id)
    if isinstance(current, Editing):
        if not current.receipt.has_index(index):
            await message.answer(f"No item at position {index + 1}.")
            return
        state.edit_receipt(user.id, lambda receipt: receipt.update_item(index, item))
    elif isinstance(current, Splitting):
        if not current.receipt_with_splitting.editable_receipt.has_index(index):
            await message.answer(f"No item at position {index + 1}.")
            return
        state.edit_split(user.id, lambda receipt: receipt.update_receipt_item(index, item))
    else:
        await message.answer(wrong_stage(current))
        return
    await reply_with_state(message, user.id)


@receipt_router.message(Command("delitem"))
async def cmd_delitem(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    try:
        index = parse_position(command_args(message))
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /delitem N")
        return

    current = state.get(user.id)
    if isinstance(current, Editing):
        if not current.receipt.has_index(index):
            await message.answer(f"No item at position {index + 1}.")
            return
        state.edit_receipt(user.id, lambda receipt: receipt.delete_item(index))
    elif isinstance(current, Splitting):
        if not current.receipt_with_splitting.editable_receipt.has_index(index):
            await message.answer(f"No item at position {index + 1}.")
            return
        state.edit_split(user.id, lambda receipt: receipt.delete_receipt_item(index))
    else:
        await message.answer(wrong_stage(current))
        return
    await reply_with_state(message, user.id)


@receipt_router.message(Command("service"))
async def cmd_service(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    try:
        amount = parse_amount(command_args(message))
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /service 3.70")
        return

    current = state.get(user.id)
    if isinstance(current, Editing):
        state.edit_receipt(user.id, lambda receipt: receipt.update_service_charge(amount))
    elif isinstance(current, Splitting):
        state.edit_split(user.id, lambda receipt: receipt.update_service_charge(amount))
    else:
        await message.answer(wrong_stage(current))
        return
    await reply_with_state(message, user.id)


@receipt_router.message(Command("total"))
async def cmd_total(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    try:
        amount = parse_amount(command_args(message))
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /total 40.70")
        return

    current = state.get(user.id)
    if isinstance(current, Editing):
        state.edit_receipt(user.id, lambda receipt: receipt.update_total(amount))
    elif isinstance(current, Splitting):
        state.edit_split(user.id, lambda receipt: receipt.update_total(amount))
    else:
        await message.answer(wrong_stage(current))
        return
    await reply_with_state(message, user.id)


@receipt_router.message(Command("split"))
async def cmd_split(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    current = state.get(user.id)
    if not isinstance(current, Editing):
        await message.answer(wrong_stage(current))
        return
    if state.enter_splitting(user.id) is None:
        await message.answer(
            "The items and service charge don't add up to the receipt total yet. "
            "Fix the receipt with /edititem, /service or /total first."
        )
        return
    await reply_with_state(message, user.id)
