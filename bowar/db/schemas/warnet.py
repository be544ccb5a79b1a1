from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class WarnetSummary(BaseModel):
    id: int
    name: str
    address: str | None = None

    class Config:
        from_attributes = True


class WarnetListItem(BaseModel):
    id: int
    name: str
    location: str | None = None
    image: str | None = None
    regular_price_per_hour: float
    member_price_per_hour: float
    total_pcs: int = Field(alias="totalPCs")
    bank_account_number: str | None = None
    bank_account_name: str | None = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class PcSlot(BaseModel):
    id: int | str
    number: int
    status: str
    remaining_minutes: int | None = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class WarnetDetail(WarnetListItem):
    description: str | None = None
    phone: str | None = None
    email: str | None = None
    operating_hours: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    rules: list[str] = Field(default_factory=list)
    pcs: list[PcSlot] = Field(default_factory=list)


class RuleItem(BaseModel):
    id: int
    text: str


class WarnetRules(BaseModel):
    warnet_id: int
    warnet_name: str
    rules: list[RuleItem] = Field(default_factory=list)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
