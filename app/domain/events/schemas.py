from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from datetime import datetime
from decimal import Decimal
from app.core.utils.text_utils import strip_text
from app.domain.categories.schemas import CategoryCreateDTO


def _normalize_currency(value: str | None) -> str | None:
    return value.strip().upper() if isinstance(value, str) else value


class EventPricesDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    regular_price_cents: int = Field(ge=0)
    currency: str = Field(min_length=3, max_length=3, pattern=r"^[A-Z]{3}$")
    available_seats: int = Field(ge=0)
    vat_included: bool = Field(default=False)
    vat_rate: Decimal = Field(ge=1, le=2, description='VAT rate multiplier (eg. 1.23 = 23% vat rate)')
    free_of_charge: bool = Field(default=False)

    _upper_currency = field_validator("currency", mode="before")(_normalize_currency)


class EventCreateDTO(EventPricesDTO):
    short_name: str = Field(min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    location: str = Field(min_length=2, max_length=500)
    event_start: datetime
    event_end: datetime
    categories: list[CategoryCreateDTO] = Field(default_factory=list)

    _strip_name = field_validator("short_name", mode="before")(strip_text)
    _strip_desc = field_validator("description", mode="before")(strip_text)
    _strip_location = field_validator("location", mode="before")(strip_text)

    @model_validator(mode="after")
    def _check_window(self):
        if self.event_end <= self.event_start:
            raise ValueError("event_end must be after event_start")
        return self


class EventUpdateDTO(EventCreateDTO):
    pass


class EventHeaderUpdateDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    short_name: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, min_length=2, max_length=500)
    event_start: datetime | None = None
    event_end: datetime | None = None

    _strip_name = field_validator("short_name", mode="before")(strip_text)
    _strip_desc = field_validator("description", mode="before")(strip_text)
    _strip_location = field_validator("location", mode="before")(strip_text)


class EventReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    organizer_id: int
    short_name: str
    description: str | None
    location: str
    latitude: str | None
    longitude: str | None
    time_zone: str
    event_start: datetime
    event_end: datetime
    regular_price_cents: int
    currency: str
    available_seats: int
    vat_included: bool
    vat_rate: Decimal
    free_of_charge: bool
    created_at: datetime
    updated_at: datetime
