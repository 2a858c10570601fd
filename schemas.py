from decimal import Decimal
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, PlainSerializer, field_validator

CENT = Decimal("0.01")

# Largest id a signed 64-bit INTEGER column holds
ID_MAX = 2**63 - 1

# Fixed-point money: two decimal places, never negative, a JSON number on the wire
Money = Annotated[
    Decimal,
    Field(ge=0, max_digits=12, decimal_places=2),
    PlainSerializer(float, return_type=float, when_used="json"),
]

class CashCardBase(BaseModel):
    amount: Money

    @field_validator("amount")
    @classmethod
    def quantize_amount(cls, value: Decimal) -> Decimal:
        return value.quantize(CENT)

class CashCardCreate(CashCardBase):
    # Omitted ids are assigned by the store
    id: Optional[int] = Field(default=None, gt=0, le=ID_MAX)

class CashCardRead(CashCardBase):
    id: int

    model_config = ConfigDict(from_attributes=True)
