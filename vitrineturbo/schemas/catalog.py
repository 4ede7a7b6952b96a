"""
VitrineTurbo - Catalog Schemas
"""
from pydantic import BaseModel, Field
from typing import Optional, List


class ProductCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    short_description: Optional[str] = Field(None, max_length=500)
    price: Optional[float] = Field(None, ge=0)
    discounted_price: Optional[float] = Field(None, ge=0)
    is_starting_price: bool = False
    category: List[str] = []
    colors: List[str] = []
    sizes: List[str] = []
    featured_image_url: Optional[str] = Field(None, max_length=500)
    is_visible_on_storefront: bool = True


class CustomSizeRequest(BaseModel):
    size_name: str = Field(..., max_length=50)
    size_type: str = "custom"


class CustomSizeResponse(BaseModel):
    success: bool
    sizes: List[str]
