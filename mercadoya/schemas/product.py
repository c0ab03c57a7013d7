from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from decimal import Decimal


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    price: Decimal = Field(..., ge=0)
    barcode: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[Decimal] = Field(None, ge=0)
    barcode: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None

    @field_validator("name", "price")
    @classmethod
    def reject_null(cls, value):
        # Поле можно не передавать, но в базе оно NOT NULL
        if value is None:
            raise ValueError("no puede ser nulo")
        return value


class ProductResponse(ProductBase):
    id: int
    price: float

    model_config = ConfigDict(from_attributes=True)


class ProductCreatedResponse(BaseModel):
    message: str
    id: int
