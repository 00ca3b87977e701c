from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Dict, List, Optional, Union
from datetime import datetime, timezone

from ..models.order import DEFAULT_LOCALE, OrderStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class LineItemBase(CamelModel):
    model_config = ConfigDict(allow_inf_nan=False)

    display_names: Dict[str, str]
    price: Union[int, float]
    qty: Union[int, float]

    @field_validator("price", "qty")
    @classmethod
    def whole_numbers_as_int(cls, value):
        # Float columns hand back 2.0 for a stored 2
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value


class LineItemCreate(LineItemBase):
    @model_validator(mode="before")
    @classmethod
    def accept_legacy_names(cls, data):
        # older clients send nameTh/nameEn, or a single generic name
        if not isinstance(data, dict) or "displayNames" in data or "display_names" in data:
            return data
        names = {}
        if data.get("nameTh") is not None:
            names["th"] = data["nameTh"]
        if data.get("nameEn") is not None:
            names["en"] = data["nameEn"]
        if not names and data.get("name") is not None:
            names[DEFAULT_LOCALE] = data["name"]
        if names:
            data = {**data, "displayNames": names}
        return data

    @field_validator("display_names")
    @classmethod
    def require_a_name(cls, value):
        if not value:
            raise ValueError("at least one display name is required")
        return value


class LineItem(LineItemBase):
    pass


class OrderCreate(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    items: List[LineItemCreate] = Field(default_factory=list)
    pickup_time: Optional[str] = None
    note: Optional[str] = None


class Order(CamelModel):
    id: str
    items: List[LineItem]
    pickup_time: Optional[str] = None
    note: Optional[str] = None
    time: datetime
    status: OrderStatus = OrderStatus.PENDING

    @field_validator("time")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # sqlite hands back naive datetimes; everything is stored in UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
