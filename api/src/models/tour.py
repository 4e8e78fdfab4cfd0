"""
Tour document schema.

Pydantic models used by the repository to validate documents before they
reach MongoDB:
- TourCreate: full document validation on insert
- TourUpdate: partial validation for PATCH-style updates

Documents are stored with camelCase field names; the models accept and dump
those names through aliases.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel


class Difficulty(str, Enum):
    """Allowed tour difficulty levels."""
    EASY = "easy"
    MEDIUM = "medium"
    DIFFICULT = "difficult"


# Field name -> Python type used to cast query-string filter values
NUMERIC_FIELDS: Dict[str, type] = {
    "duration": int,
    "maxGroupSize": int,
    "ratingsAverage": float,
    "ratingsQuantity": int,
    "price": float,
    "priceDiscount": float,
}

DATE_FIELDS = frozenset({"startDates", "createdAt"})

# Hidden from query results unless explicitly selected
INTERNAL_FIELDS = frozenset({"createdAt"})


class TourBase(BaseModel):
    """Shared model config for tour schemas."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
        use_enum_values=True,
    )


class TourCreate(TourBase):
    """
    Schema for a new tour document.

    Fields that are not part of the schema are dropped.
    """

    name: str = Field(..., min_length=10, max_length=40)
    duration: Optional[int] = Field(None, gt=0)
    max_group_size: Optional[int] = Field(None, gt=0)
    difficulty: Difficulty
    ratings_average: float = Field(4.5, ge=1, le=5)
    ratings_quantity: int = Field(0, ge=0)
    price: float = Field(..., ge=0)
    price_discount: Optional[float] = Field(None, ge=0)
    summary: Optional[str] = None
    description: Optional[str] = None
    image_cover: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    start_dates: List[datetime] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("price_discount")
    @classmethod
    def validate_price_discount(cls, v: Optional[float], info: ValidationInfo) -> Optional[float]:
        """Discount must stay below the regular price."""
        price = info.data.get("price")
        if v is not None and price is not None and v >= price:
            raise ValueError(f"Discount price ({v}) should be below regular price")
        return v

    def to_document(self) -> Dict[str, Any]:
        """Dump as a MongoDB document with camelCase keys."""
        return self.model_dump(by_alias=True, exclude_none=True)


class TourUpdate(TourBase):
    """
    Schema for a partial tour update.

    Only fields present in the request are validated and written.
    """

    name: Optional[str] = Field(None, min_length=10, max_length=40)
    duration: Optional[int] = Field(None, gt=0)
    max_group_size: Optional[int] = Field(None, gt=0)
    difficulty: Optional[Difficulty] = None
    ratings_average: Optional[float] = Field(None, ge=1, le=5)
    ratings_quantity: Optional[int] = Field(None, ge=0)
    price: Optional[float] = Field(None, ge=0)
    price_discount: Optional[float] = Field(None, ge=0)
    summary: Optional[str] = None
    description: Optional[str] = None
    image_cover: Optional[str] = None
    images: Optional[List[str]] = None
    start_dates: Optional[List[datetime]] = None

    @field_validator("name", "difficulty", "price", mode="before")
    @classmethod
    def reject_null_required(cls, v: Any, info: ValidationInfo) -> Any:
        """Required fields may be omitted from an update but not cleared."""
        if v is None:
            raise ValueError(f"{to_camel(info.field_name)} is required and cannot be null")
        return v

    @field_validator("price_discount")
    @classmethod
    def validate_price_discount(cls, v: Optional[float], info: ValidationInfo) -> Optional[float]:
        """Checked against the price only when the update also sets one."""
        price = info.data.get("price")
        if v is not None and price is not None and v >= price:
            raise ValueError(f"Discount price ({v}) should be below regular price")
        return v

    def to_update(self) -> Dict[str, Any]:
        """Fields explicitly set by the caller, camelCase keys."""
        return self.model_dump(by_alias=True, exclude_unset=True)


def to_public(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a stored document into its API representation.

    ``_id`` becomes a hex string mirrored under ``id``; ``durationWeeks`` is
    derived from ``duration`` when present.
    """
    public = dict(document)
    if "_id" in public:
        public["_id"] = str(public["_id"])
        public["id"] = public["_id"]
    if isinstance(public.get("duration"), (int, float)):
        public["durationWeeks"] = public["duration"] / 7
    return public
