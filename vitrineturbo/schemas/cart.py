"""
VitrineTurbo - Cart Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List


class CartItem(BaseModel):
    id: str
    title: str
    price: float
    discounted_price: Optional[float] = None
    quantity: int = Field(1, ge=1)
    selected_color: Optional[str] = None
    selected_size: Optional[str] = None
    notes: Optional[str] = None
    variant_id: Optional[str] = None
    featured_image_url: Optional[str] = None
    is_starting_price: bool = False
    available_colors: List[str] = []
    available_sizes: List[str] = []

    @property
    def effective_price(self) -> float:
        """Preço com desconto quando menor que o preço cheio"""
        if self.discounted_price is not None and 0 < self.discounted_price < self.price:
            return self.discounted_price
        return self.price

    @property
    def subtotal(self) -> float:
        return self.effective_price * self.quantity


class CartStats(BaseModel):
    item_count: int = 0
    total: float = 0.0


class OrderItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1, le=999)
    selected_color: Optional[str] = Field(None, max_length=50)
    selected_size: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = Field(None, max_length=500)


class OrderRequest(BaseModel):
    items: List[OrderItemRequest] = Field(..., min_length=1)
    language: Optional[str] = None
    currency: Optional[str] = None


class OrderResponse(BaseModel):
    item_count: int
    total: float
    message: str
    whatsapp_url: str
