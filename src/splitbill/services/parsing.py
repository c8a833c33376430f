from __future__ import annotations

import base64
import json
from decimal import Decimal
from typing import Any, List, Optional, Protocol

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, ValidationError

from splitbill.config import Settings
from splitbill.db.models import ReceiptItem, ReceiptParseResult
from splitbill.logging import get_logger

log = get_logger(__name__)


class ReceiptParseError(Exception):
    """The image could not be turned into a ReceiptParseResult."""


class ReceiptParsingService(Protocol):
    async def parse_receipt(self, image: bytes) -> ReceiptParseResult: ...


class ParsedItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    quantity: int = 1
    cost: Decimal


class ParsedReceipt(BaseModel):
    """Shape of the JSON the model is asked to return."""

    model_config = ConfigDict(extra="ignore")

    error: Optional[str] = None
    items: Optional[List[ParsedItem]] = None
    service: Optional[Decimal] = None
    total: Optional[Decimal] = None

    def to_result(self) -> ReceiptParseResult:
        items = None
        if self.items is not None:
            items = tuple(
                ReceiptItem(name=item.name, quantity=max(item.quantity, 1), cost=item.cost)
                for item in self.items
            )
        return ReceiptParseResult(
            error=self.error,
            items=items,
            service_charge=self.service,
            total=self.total,
        )


RECEIPT_PROMPT = """
Analyze this image to determine if it's a UK expense receipt.

You must always return a JSON object with ALL four fields: error, items, service, total

If it is NOT a valid receipt or the image is unclear:
{"error": "description of why it's not a valid receipt", "items": null, "service": null, "total": null}

If it IS a valid UK receipt:
{"error": null, "items": [{"name": "Pizza", "quantity": 2, "cost": 20.00}, {"name": "Espresso", "quantity": 3, "cost": 9.00}], "service": 2.90, "total": 31.90}

Rules for parsing items:
- Look for quantity indicators like "2x Pizza", "3 Espresso", "2 × Item"
- If no quantity is specified, default to 1
- The cost should be the TOTAL cost for that quantity, not the unit price

General rules:
- Use null for fields that don't apply
- Use pound values as numbers (e.g., 12.50 not "£12.50")
- If there is no service charge, set service to null
""".strip()


RECEIPT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "error": {
            "type": ["string", "null"],
            "description": "Error message if the image is invalid or not a receipt",
        },
        "items": {
            "type": ["array", "null"],
            "description": "List of items found on the receipt",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string", "description": "Name of the item"},
                    "quantity": {
                        "type": "integer",
                        "description": "Quantity of the item (default 1 if not specified)",
                    },
                    "cost": {"type": "number", "description": "Total cost for this quantity of the item"},
                },
                "required": ["name", "quantity", "cost"],
                "additionalProperties": False,
            },
        },
        "service": {"type": ["number", "null"], "description": "Service charge if present"},
        "total": {"type": ["number", "null"], "description": "Total amount on the receipt"},
    },
    "required": ["error", "items", "service", "total"],
    "additionalProperties": False,
}


def parse_model_reply(content: Optional[str]) -> ReceiptParseResult:
    if not content:
        raise ReceiptParseError("Empty response from the receipt parser")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise ReceiptParseError(f"Failed to parse API response: {exc}") from exc
    try:
        return ParsedReceipt.model_validate(data).to_result()
    except ValidationError as exc:
        raise ReceiptParseError(f"Unexpected receipt format: {exc.error_count()} invalid field(s)") from exc


class OpenAIReceiptParser:
    def __init__(self, api_key: str, model: str = "gpt-4o-mini", client: Optional[AsyncOpenAI] = None) -> None:
        self.api_key = api_key
        self.model = model
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def parse_receipt(self, image: bytes) -> ReceiptParseResult:
        if not self.api_key and self._client is None:
            raise ReceiptParseError("OpenAI API key not configured. Set OPENAI_API_KEY in your .env file.")
        if not image:
            raise ReceiptParseError("Failed to process image")

        b64 = base64.b64encode(image).decode("ascii")
        log.info("receipt.parse.request", model=self.model, image_bytes=len(image))
        try:
            response = await self._get_client().chat.completions.create(
                model=self.model,
                max_tokens=1000,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": RECEIPT_PROMPT},
                            {"type": "image_url", "image_url": {"url": f"data:image/jpeg;base64,{b64}"}},
                        ],
                    }
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {"name": "receipt_parse_result", "strict": True, "schema": RECEIPT_SCHEMA},
                },
            )
        except OpenAIError as exc:
            log.warning("receipt.parse.api_error", error=str(exc))
            raise ReceiptParseError(f"Network error: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        result = parse_model_reply(content)
        log.info(
            "receipt.parse.done",
            is_receipt=result.is_receipt,
            items=len(result.items or ()),
        )
        return result


class MockReceiptParser:
    async def parse_receipt(self, image: bytes) -> ReceiptParseResult:
        return ReceiptParseResult(
            items=(
                ReceiptItem("Fish & Chips", 2, Decimal("17.90")),
                ReceiptItem("Mushy Peas", 1, Decimal("2.50")),
                ReceiptItem("Tea", 2, Decimal("3.60")),
            ),
            service_charge=Decimal("2.40"),
            total=Decimal("26.40"),
        )


def build_parser(settings: Settings) -> ReceiptParsingService:
    if settings.use_mock_parser:
        log.info("receipt.parser.mock")
        return MockReceiptParser()
    return OpenAIReceiptParser(api_key=settings.openai_api_key, model=settings.openai_model)


_global_parser: ReceiptParsingService | None = None


def set_global_parser(parser: ReceiptParsingService) -> None:
    global _global_parser
    _global_parser = parser


def get_global_parser() -> ReceiptParsingService:
    if _global_parser is None:
        raise RuntimeError("Receipt parser is not initialised")
    return _global_parser
