from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional


class VariantSize(BaseModel):
    size: Optional[str] = None
    mrp: float = Field(default=0, ge=0)
    price: float = Field(ge=0)


class Variant(BaseModel):
    name: str = ""
    color: Optional[str] = None
    color_hex: str = Field(default="#000000", alias="colorHex")
    images: List[str] = []
    sizes: List[VariantSize] = Field(min_length=1)

    model_config = ConfigDict(populate_by_name=True)


class ProductCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    store_id: str = Field(alias="storeId", min_length=1)
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: str = Field(min_length=1)
    gst: float = Field(default=0, ge=0, le=100)
    variants: List[Variant] = Field(min_length=1)

    @model_validator(mode="after")
    def price_must_be_positive(self):
        if self.variants[0].sizes[0].price <= 0:
            raise ValueError("first variant size needs a price")
        return self

    @property
    def base_size(self) -> VariantSize:
        # catalog price/mrp come from the first variant's first size
        return self.variants[0].sizes[0]

    @property
    def colors(self) -> List[str]:
        return list(dict.fromkeys(v.color for v in self.variants if v.color))

    @property
    def sizes(self) -> List[str]:
        return list(dict.fromkeys(s.size for v in self.variants for s in v.sizes if s.size))
