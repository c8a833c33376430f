"""Per-user receipt sessions for the bot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from splitbill.db.models import BillEvent, ReceiptParseResult
from splitbill.services.receipt import EditableReceipt
from splitbill.services.splitting import EditableReceiptWithSplitting


@dataclass(frozen=True, slots=True)
class Initial:
    pass


@dataclass(frozen=True, slots=True)
class Loading:
    pass


@dataclass(frozen=True, slots=True)
class Error:
    message: str


@dataclass(frozen=True, slots=True)
class Editing:
    receipt: EditableReceipt


@dataclass(frozen=True, slots=True)
class Splitting:
    receipt_with_splitting: EditableReceiptWithSplitting


@dataclass(frozen=True, slots=True)
class BalanceSummary:
    receipt_with_splitting: EditableReceiptWithSplitting
    # Set when a saved bill is being viewed
    event_id: Optional[str] = None


SessionState = Union[Initial, Loading, Error, Editing, Splitting, BalanceSummary]

ReceiptEdit = Callable[[EditableReceipt], EditableReceipt]
SplitEdit = Callable[[EditableReceiptWithSplitting], EditableReceiptWithSplitting]

INITIAL = Initial()


class SessionStateManager:
    def __init__(self) -> None:
        self._states: dict[int, SessionState] = {}
        self._saved_names: dict[int, str] = {}

    def get(self, user_id: int) -> SessionState:
        return self._states.get(user_id, INITIAL)

    def set(self, user_id: int, value: SessionState) -> SessionState:
        self._states[user_id] = value
        return value

    def reset(self, user_id: int) -> SessionState:
        self._states.pop(user_id, None)
        self._saved_names.pop(user_id, None)
        return INITIAL

    def start_loading(self, user_id: int) -> SessionState:
        return self.set(user_id, Loading())

    def receipt_parsed(self, user_id: int, result: ReceiptParseResult) -> Editing:
        state = Editing(EditableReceipt.from_parse_result(result))
        self.set(user_id, state)
        return state

    def parse_failed(self, user_id: int, message: str) -> Error:
        state = Error(message or "Failed to parse receipt")
        self.set(user_id, state)
        return state

    def edit_receipt(self, user_id: int, edit: ReceiptEdit) -> Optional[Editing]:
        current = self.get(user_id)
        if not isinstance(current, Editing):
            return None
        state = Editing(edit(current.receipt))
        self.set(user_id, state)
        return state

    def edit_split(self, user_id: int, edit: SplitEdit, *, allow_summary: bool = False) -> Optional[SessionState]:
        current = self.get(user_id)
        if isinstance(current, Splitting):
            return self.set(user_id, Splitting(edit(current.receipt_with_splitting)))
        if allow_summary and isinstance(current, BalanceSummary):
            return self.set(
                user_id,
                BalanceSummary(edit(current.receipt_with_splitting), event_id=current.event_id),
            )
        return None

    def enter_splitting(self, user_id: int) -> Optional[Splitting]:
        current = self.get(user_id)
        if not isinstance(current, Editing) or current.receipt.calculation.has_discrepancy:
            return None
        state = Splitting(EditableReceiptWithSplitting.from_editable_receipt(current.receipt))
        self.set(user_id, state)
        return state

    def exit_splitting(self, user_id: int) -> Optional[Editing]:
        current = self.get(user_id)
        if isinstance(current, Splitting) or (
            isinstance(current, BalanceSummary) and current.event_id is None
        ):
            state = Editing(current.receipt_with_splitting.editable_receipt)
            self.set(user_id, state)
            return state
        return None

    def show_summary(self, user_id: int) -> Optional[BalanceSummary]:
        current = self.get(user_id)
        if not isinstance(current, Splitting):
            return None
        state = BalanceSummary(current.receipt_with_splitting)
        self.set(user_id, state)
        return state

    def back_to_splitting(self, user_id: int) -> Optional[Splitting]:
        current = self.get(user_id)
        if not isinstance(current, BalanceSummary) or current.event_id is not None:
            return None
        state = Splitting(current.receipt_with_splitting)
        self.set(user_id, state)
        return state

    def view_event(self, user_id: int, event: BillEvent) -> BalanceSummary:
        state = BalanceSummary(event.receipt_with_splitting, event_id=event.id)
        self.set(user_id, state)
        self._saved_names[user_id] = event.name
        return state

    def viewed_event_id(self, user_id: int) -> Optional[str]:
        current = self.get(user_id)
        if isinstance(current, BalanceSummary):
            return current.event_id
        return None

    def viewed_event_name(self, user_id: int) -> Optional[str]:
        if self.viewed_event_id(user_id) is None:
            return None
        return self._saved_names.get(user_id)

    def set_viewed_event_name(self, user_id: int, name: str) -> None:
        self._saved_names[user_id] = name


state = SessionStateManager()
