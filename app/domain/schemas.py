# app/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from decimal import Decimal
from datetime import datetime


class ProductIn(BaseModel):
    """
    Schema dla tworzenia / aktualizacji produktu.
    Wszystkie pola opcjonalne - wymagalnosc sprawdza CatalogService.
    """

    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    price: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2)
    brand: Optional[str] = Field(None, max_length=100)
    category: Optional[str] = Field(None, max_length=100)
    count_in_stock: Optional[int] = None
    images: Optional[List[str]] = None


class ProductOut(BaseModel):
    id: str
    name: str
    description: str
    price: Decimal
    brand: str
    category: str
    count_in_stock: int
    images: List[str]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    product_id: str = Field(..., min_length=1)
    quantity: int = Field(1, gt=0, description="Ilosc (musi byc > 0)")


class QuantityIn(BaseModel):
    """Ustawienie ilosci - wartosc <= 0 usuwa pozycje."""

    product_id: str = Field(..., min_length=1)
    quantity: int


class CartItemOut(BaseModel):
    product_id: str
    name: str
    price: Decimal
    image: Optional[str] = None
    quantity: int
    subtotal: Decimal


class CartOut(BaseModel):
    id: Optional[str] = None
    user_id: str
    items: List[CartItemOut]
    total_items: int
    total_price: Decimal


class MessageOut(BaseModel):
    message: str


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=200, pattern=r"^[^@\s]+@[^@\s]+$")


class UserRead(BaseModel):
    id: str
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)
