"""Pydantic schemas for items exchanged with the store and derived statistics."""
from __future__ import annotations

import math
from datetime import date, datetime, timezone
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

UNCATEGORIZED = "Uncategorized"


def coerce_number(value: Any) -> float:
    """Convert a wire value to a float, mapping anything unusable to ``0``."""

    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        try:
            number = float(stripped)
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_tags(value: Any) -> list[str]:
    """Accept a list of tags or a ``;`` separated string as typed in the form."""

    if isinstance(value, str):
        return [tag.strip() for tag in value.split(";") if tag.strip()]
    if isinstance(value, (list, tuple)):
        return [str(tag) for tag in value if tag is not None]
    return []


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RawItem(BaseModel):
    """An item record as held by the remote store."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, from_attributes=True)

    id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("_id", "id"),
        serialization_alias="_id",
    )
    name: str = Field(..., min_length=1)
    quantity: float = 0.0
    price: float = 0.0
    category: str = UNCATEGORIZED
    tags: list[str] = Field(default_factory=list)
    history: list[Any] = Field(default_factory=list, description="Only its length is used.")
    restock_by: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("restockBy", "restock_by"),
        serialization_alias="restockBy",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)

    @field_validator("name", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("quantity", "price", mode="before")
    @classmethod
    def _coerce_numbers(cls, value: Any) -> float:
        return coerce_number(value)

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return UNCATEGORIZED
        return str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> list[str]:
        return parse_tags(value)

    @field_validator("history", mode="before")
    @classmethod
    def _coerce_history(cls, value: Any) -> list[Any]:
        return list(value) if isinstance(value, (list, tuple)) else []

    @field_validator("restock_by", mode="before")
    @classmethod
    def _coerce_restock_by(cls, value: Any) -> datetime | None:
        return _parse_timestamp(value)

    def to_payload(self) -> "ItemPayload":
        """Fields needed to create this item again, without its identifier."""

        return ItemPayload(
            name=self.name,
            quantity=self.quantity,
            price=self.price,
            category=self.category,
            tags=list(self.tags),
            restock_by=self.restock_by,
        )


class CanonicalItem(RawItem):
    """A merged view over every raw item sharing a name and category."""

    member_ids: list[str] = Field(default_factory=list)


class ItemPayload(BaseModel):
    """Body sent to the store on create and update."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    quantity: float = Field(..., ge=0)
    price: float = Field(..., ge=0)
    category: str = UNCATEGORIZED
    tags: list[str] = Field(default_factory=list)
    restock_by: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("restockBy", "restock_by"),
        serialization_alias="restockBy",
    )

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return UNCATEGORIZED
        return str(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> list[str]:
        return parse_tags(value)

    @field_validator("restock_by", mode="before")
    @classmethod
    def _coerce_restock_by(cls, value: Any) -> datetime | None:
        return _parse_timestamp(value)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LowStockEntry(BaseModel):
    id: str | None = None
    name: str
    quantity: float


class TopStockedEntry(BaseModel):
    rank: int
    id: str | None = None
    name: str
    quantity: float


class PopularityEntry(BaseModel):
    id: str | None = None
    name: str
    category: str
    update_count: int = Field(..., description="Number of recorded updates.")


class PopularityReport(BaseModel):
    top: list[PopularityEntry] = Field(default_factory=list)
    least: list[PopularityEntry] | None = Field(
        default=None,
        description="None when it would repeat exactly the same items as ``top``.",
    )

    @property
    def has_least_data(self) -> bool:
        return bool(self.least)


class CategoryCount(BaseModel):
    category: str
    count: int


class RestockReminder(BaseModel):
    id: str | None = None
    name: str
    restock_by: datetime
    is_past: bool


class DashboardSummary(BaseModel):
    total_items: int
    category_total: int
    low_stock_count: int
    inventory_value: str
    categories: list[CategoryCount] = Field(default_factory=list)
    top_stocked: list[TopStockedEntry] = Field(default_factory=list)
    low_stock: list[LowStockEntry] = Field(default_factory=list)
    popularity: PopularityReport = Field(default_factory=PopularityReport)
    restock_reminders: list[RestockReminder] = Field(default_factory=list)
    generated_at: datetime


class HealthStatus(BaseModel):
    status: Literal["ok"] = "ok"
    environment: str


__all__ = [
    "UNCATEGORIZED",
    "coerce_number",
    "parse_tags",
    "RawItem",
    "CanonicalItem",
    "ItemPayload",
    "LowStockEntry",
    "TopStockedEntry",
    "PopularityEntry",
    "PopularityReport",
    "CategoryCount",
    "RestockReminder",
    "DashboardSummary",
    "HealthStatus",
]
