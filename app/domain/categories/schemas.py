from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from datetime import datetime
from app.core.utils.text_utils import strip_text


class CategoryCreateDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=1000)
    inception: datetime
    expiration: datetime
    max_tickets: int = Field(ge=0)
    price_cents: int = Field(ge=0, description='Nominal unit price in minor currency units')
    token_generation_requested: bool = Field(default=False)

    _strip_name = field_validator("name", mode="before")(strip_text)
    _strip_desc = field_validator("description", mode="before")(strip_text)

    @model_validator(mode="after")
    def _check_window(self):
        if self.expiration <= self.inception:
            raise ValueError("expiration must be after inception")
        return self


class CategoryUpdateDTO(CategoryCreateDTO):
    pass


class CategoryReadDTO(BaseModel):
    model_config = ConfigDict(from_attributes=True, extra='forbid')

    id: int
    event_id: int
    name: str
    description: str | None
    inception: datetime
    expiration: datetime
    max_tickets: int
    price_cents: int
    access_restricted: bool
    active: bool


class CategoryInventoryDTO(CategoryReadDTO):
    sold_tickets: int
    not_sold_tickets: int
    free_tickets: int
    waiting_tokens: int
    locked_tokens: int


class ReallocationDTO(BaseModel):
    model_config = ConfigDict(extra='forbid')

    target_category_id: int = Field(gt=0)
