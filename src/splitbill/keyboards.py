from __future__ import annotations

from typing import Sequence

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

from splitbill.db.models import BillEvent


def bill_list_keyboard(events: Sequence[BillEvent]) -> InlineKeyboardMarkup:
    rows: list[list[InlineKeyboardButton]] = []
    for position, event in enumerate(events, start=1):
        rows.append([InlineKeyboardButton(text=f"{position}. {event.name}", callback_data=f"bill_open:{event.id}")])
    return InlineKeyboardMarkup(inline_keyboard=rows)


def bill_actions_keyboard(event_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [InlineKeyboardButton(text="Delete", callback_data=f"bill_delete:{event_id}")],
            [InlineKeyboardButton(text="« All bills", callback_data="bill_list")],
        ]
    )


def confirm_delete_keyboard(event_id: str) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(text="Yes, delete", callback_data=f"bill_delete_yes:{event_id}"),
                InlineKeyboardButton(text="Keep", callback_data=f"bill_open:{event_id}"),
            ]
        ]
    )
