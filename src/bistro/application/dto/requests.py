from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class OrderItemRequest(BaseModel):
    product_id: str
    # Coerced by the use case: anything missing or invalid becomes 1.
    quantity: Any = None


class CreateOrderRequest(BaseModel):
    """Wire format of ``POST /api/orders``; keys are snake_case on purpose."""

    table_id: int = Field(gt=0)
    items: list[OrderItemRequest] = Field(min_length=1)


class CounterOrderRequest(BaseModel):
    items: list[OrderItemRequest] = Field(min_length=1)


class UpdateItemQuantityRequest(CamelBaseModel):
    quantity: int = Field(ge=1)


class CategoryRequest(CamelBaseModel):
    name: str = Field(min_length=1, max_length=255)
    icon: str | None = Field(default=None, max_length=32)


class ProductRequest(CamelBaseModel):
    name: str = Field(min_length=1, max_length=255)
    price_cents: int = Field(ge=0)
    stock_quantity: int = 0
    category_id: str | None = None
    active: bool = True


class AvailabilityRequest(CamelBaseModel):
    active: bool


class CreateTableRequest(CamelBaseModel):
    table_id: int = Field(gt=0)
    name: str | None = Field(default=None, max_length=100)


class StockAdjustmentRequest(CamelBaseModel):
    delta: int
    reason: str = Field(max_length=255)

    @field_validator("reason")
    @classmethod
    def _strip_reason(cls, value: str) -> str:
        return value.strip()


class TransactionRequest(CamelBaseModel):
    description: str = Field(min_length=1, max_length=255)
    amount_cents: int = Field(gt=0)
    type: str = Field(pattern="^(income|expense)$")
    status: str = Field(default="pending", pattern="^(pending|paid)$")
    due_date: date | None = None
    counterparty: str | None = Field(default=None, max_length=255)
    category: str | None = Field(default=None, max_length=100)


class SettingsRequest(CamelBaseModel):
    restaurant_name: str = Field(min_length=1, max_length=255)
    currency: str = Field(min_length=3, max_length=3)
    dark_mode: bool = True
    printer_enabled: bool = False
    sound_alert_enabled: bool = True


class ResetRequest(CamelBaseModel):
    confirm: str
