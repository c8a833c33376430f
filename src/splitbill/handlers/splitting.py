from __future__ import annotations

from typing import Optional

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from splitbill.db.models import Participant
from splitbill.handlers.common import command_args, reply_with_state, wrong_stage
from splitbill.services.splitting import EditableReceiptWithSplitting
from splitbill.state import BalanceSummary, Splitting, state
from splitbill.utils.parse import parse_position, parse_positions

splitting_router = Router()


def _current_split(user_id: int, allow_summary: bool = False) -> Optional[EditableReceiptWithSplitting]:
    current = state.get(user_id)
    if isinstance(current, Splitting):
        return current.receipt_with_splitting
    if allow_summary and isinstance(current, BalanceSummary):
        return current.receipt_with_splitting
    return None


def _participant_at(receipt: EditableReceiptWithSplitting, index: int) -> Optional[Participant]:
    if 0 <= index < len(receipt.participants):
        return receipt.participants[index]
    return None


@splitting_router.message(Command("done"))
async def cmd_done(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    if state.exit_splitting(user.id) is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    await reply_with_state(message, user.id)


@splitting_router.message(Command("addperson"))
async def cmd_addperson(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    name = command_args(message)
    if not name:
        await message.answer("Usage: /addperson name")
        return
    if state.edit_split(user.id, lambda receipt: receipt.add_participant(name)) is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    await reply_with_state(message, user.id)


@splitting_router.message(Command("removeperson"))
async def cmd_removeperson(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    receipt = _current_split(user.id)
    if receipt is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    try:
        participant = _participant_at(receipt, parse_position(command_args(message)))
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /removeperson P")
        return
    if participant is None:
        await message.answer("No participant at that position.")
        return

    state.edit_split(user.id, lambda r: r.remove_participant(participant.id))
    await reply_with_state(message, user.id)


@splitting_router.message(Command("assign"))
async def cmd_assign(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    receipt = _current_split(user.id)
    if receipt is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    try:
        positions = parse_positions(command_args(message))
        if len(positions) != 2:
            raise ValueError("Expected an item number and a participant number")
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /assign N P")
        return

    index, participant = positions[0], _participant_at(receipt, positions[1])
    if not receipt.editable_receipt.has_index(index):
        await message.answer(f"No item at position {index + 1}.")
        return
    if participant is None:
        await message.answer("No participant at that position.")
        return

    state.edit_split(user.id, lambda r: r.assign_item_to_participant(index, participant.id))
    await reply_with_state(message, user.id)


@splitting_router.message(Command("share"))
async def cmd_share(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    receipt = _current_split(user.id)
    if receipt is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    try:
        positions = parse_positions(command_args(message))
        if not positions:
            raise ValueError("Expected an item number")
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /share N P1 P2 ...")
        return

    index = positions[0]
    if not receipt.editable_receipt.has_index(index):
        await message.answer(f"No item at position {index + 1}.")
        return

    # Without participant numbers the item is shared by everyone
    members = positions[1:] or list(range(len(receipt.participants)))
    participants = [_participant_at(receipt, member) for member in members]
    if any(participant is None for participant in participants):
        await message.answer("No participant at one of those positions.")
        return

    ids = [participant.id for participant in participants if participant is not None]
    state.edit_split(user.id, lambda r: r.assign_item_to_equal_split(index, ids))
    await reply_with_state(message, user.id)


@splitting_router.message(Command("unassign"))
async def cmd_unassign(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    receipt = _current_split(user.id)
    if receipt is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    try:
        index = parse_position(command_args(message))
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /unassign N")
        return
    if not receipt.editable_receipt.has_index(index):
        await message.answer(f"No item at position {index + 1}.")
        return

    state.edit_split(user.id, lambda r: r.unassign_item(index))
    await reply_with_state(message, user.id)


@splitting_router.message(Command("payer"))
async def cmd_payer(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    receipt = _current_split(user.id, allow_summary=True)
    if receipt is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    try:
        participant = _participant_at(receipt, parse_position(command_args(message)))
    except ValueError as exc:
        await message.answer(f"{exc}\nUsage: /payer P")
        return
    if participant is None:
        await message.answer("No participant at that position.")
        return

    state.edit_split(user.id, lambda r: r.designate_payer(participant.id), allow_summary=True)
    await reply_with_state(message, user.id)


@splitting_router.message(Command("clearpayer"))
async def cmd_clearpayer(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    if state.edit_split(user.id, lambda r: r.clear_payer(), allow_summary=True) is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    await reply_with_state(message, user.id)


@splitting_router.message(Command("summary"))
async def cmd_summary(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    if state.show_summary(user.id) is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    await reply_with_state(message, user.id)


@splitting_router.message(Command("back"))
async def cmd_back(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    if state.back_to_splitting(user.id) is None:
        await message.answer(wrong_stage(state.get(user.id)))
        return
    await reply_with_state(message, user.id)
