from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.types import Message

from splitbill.state import state

basic_router = Router()


HELP_TEXT = (
    "<b>📖 Commands</b>\n\n"
    "<b>Receipt:</b>\n"
    "send a photo - read a receipt\n"
    "/new - start an empty receipt\n"
    "/additem name | qty | cost - add an item\n"
    "/edititem N | name | qty | cost - replace item N\n"
    "/delitem N - delete item N\n"
    "/service amount - set the service charge\n"
    "/total amount - set the receipt total\n\n"
    "<b>Splitting:</b>\n"
    "/split - start splitting\n"
    "/addperson name - add a participant\n"
    "/removeperson P - remove participant P\n"
    "/assign N P - item N goes to participant P\n"
    "/share N P1 P2 ... - split item N equally\n"
    "/unassign N - clear item N\n"
    "/payer P, /clearpayer - who paid the bill\n"
    "/summary - balances, /back - return to splitting\n"
    "/done - back to editing the receipt\n\n"
    "<b>Saved bills:</b>\n"
    "/save name - save the current summary\n"
    "/bills - list saved bills\n"
    "/rename name - rename the bill you are viewing\n\n"
    "/cancel - drop the current receipt"
)


@basic_router.message(CommandStart())
async def cmd_start(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    state.reset(user.id)
    await message.answer(
        f"👋 Hi, {user.first_name}!\n\n"
        "I'm <b>SplitBill</b>. Send me a photo of a receipt and I'll help you "
        "work out who owes what.\n\n"
        "Use /help to see all commands."
    )


@basic_router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@basic_router.message(Command("cancel"))
async def cmd_cancel(message: Message) -> None:
    user = message.from_user
    if not user:
        return

    state.reset(user.id)
    await message.answer("Receipt dropped. Send a new photo whenever you're ready.")
