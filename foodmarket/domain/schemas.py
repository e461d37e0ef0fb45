# foodmarket/domain/schemas.py
from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field, field_validator


def _strip(v):
    return v.strip() if isinstance(v, str) else v


StrippedStr = Annotated[str, BeforeValidator(_strip)]


# ---------- katalog ----------

class FoodIn(BaseModel):
    """Schema dla tworzenia/edycji pozycji menu."""

    name: StrippedStr = Field(..., min_length=1, max_length=120, validation_alias=AliasChoices("name", "nombre"))
    category: Optional[str] = Field(None, max_length=40, validation_alias=AliasChoices("category", "categoria"))
    category_id: Optional[int] = Field(None, gt=0, validation_alias=AliasChoices("category_id", "categoria_id"))
    price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, validation_alias=AliasChoices("price", "precio"))
    image: Optional[str] = Field(None, validation_alias=AliasChoices("image", "imagen"))


class FoodOut(BaseModel):
    id: int
    name: str
    category: Optional[str] = None
    category_id: Optional[int] = None
    price: Decimal
    image: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CategoryIn(BaseModel):
    name: StrippedStr = Field(..., min_length=1, max_length=120, validation_alias=AliasChoices("name", "nombre"))


class CategoryPatchIn(BaseModel):
    name: Optional[StrippedStr] = Field(
        None, min_length=1, max_length=120, validation_alias=AliasChoices("name", "nombre")
    )


class CategoryOut(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class PageMeta(BaseModel):
    total: int
    limit: int
    offset: int
    order_by: str
    order: str


class CategoryPage(BaseModel):
    items: List[CategoryOut]
    meta: PageMeta


# ---------- koszyk ----------

class AddItemIn(BaseModel):
    """Schema dla dodawania produktu do koszyka."""

    food_id: int = Field(..., gt=0, validation_alias=AliasChoices("food_id", "comida_id"))
    quantity: int = Field(..., gt=0, validation_alias=AliasChoices("quantity", "cantidad"))
    note: Optional[str] = Field(None, max_length=500, validation_alias=AliasChoices("note", "notas"))


class UpdateQuantityIn(BaseModel):
    quantity: int = Field(..., gt=0, validation_alias=AliasChoices("quantity", "cantidad"))


class ContactInfoIn(BaseModel):
    """Dane klienta wymagane dopiero przy checkoucie."""

    name: StrippedStr = Field(..., min_length=1, validation_alias=AliasChoices("name", "nombre_cliente"))
    email: StrippedStr = Field(..., min_length=3, validation_alias=AliasChoices("email", "email_cliente"))
    phone: Optional[StrippedStr] = Field(None, validation_alias=AliasChoices("phone", "telefono_cliente"))
    address: Optional[StrippedStr] = Field(None, validation_alias=AliasChoices("address", "direccion"))

    @field_validator("email")
    @classmethod
    def _email_shape(cls, v: str) -> str:
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class CartLineOut(BaseModel):
    id: int
    food_id: int
    name: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    quantity: int
    unit_price: Decimal
    note: Optional[str] = None
    subtotal: Decimal


class CartInfoOut(BaseModel):
    id: int
    session_id: str
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None


class CartSummary(BaseModel):
    total_items: int
    subtotal: Decimal
    total: Decimal


class CartOut(BaseModel):
    """Schema dla koszyka (response)."""

    cart: CartInfoOut
    items: List[CartLineOut]
    summary: CartSummary
    session_token: Optional[str] = None


class ClearCartOut(BaseModel):
    removed_items: int


# ---------- checkout ----------

class PaymentIntentOut(BaseModel):
    client_secret: str
    payment_intent_id: str
    payment_id: int
    amount: Decimal
    currency: str


class ConfirmPaymentIn(BaseModel):
    payment_intent_id: str = Field(
        ..., min_length=1, validation_alias=AliasChoices("payment_intent_id", "paymentIntentId")
    )


class ConfirmOut(BaseModel):
    order_ids: List[int]
    payment_id: int
    already_processed: bool = False


class ManualCheckoutOut(BaseModel):
    order_ids: List[int]
    payment_id: int
    order_status: str
    amount: Decimal


class PaymentStatusOut(BaseModel):
    gateway_status: str
    status: str
    order_id: Optional[int] = None
    amount: Decimal
    currency: str


class CheckoutConfigOut(BaseModel):
    publishable_key: str
    currency: str


# ---------- zamowienia ----------

class OrderStatusIn(BaseModel):
    status: StrippedStr = Field(..., min_length=1, validation_alias=AliasChoices("status", "estado"))


class OrderOut(BaseModel):
    """Schema dla zamowienia (response)."""

    id: int
    food_id: int
    payment_id: Optional[int] = None
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    address: Optional[str] = None
    quantity: int
    total_price: Decimal
    status: str
    payment_method: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatusTotalsOut(BaseModel):
    status: str
    count: int
    total_sales: Decimal


class TodayTotalsOut(BaseModel):
    orders: int
    sales: Decimal


class OrderSummaryOut(BaseModel):
    by_status: List[StatusTotalsOut]
    total_orders: int
    today: TodayTotalsOut
