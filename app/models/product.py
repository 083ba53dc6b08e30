from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime
from uuid import uuid4


class Product(SQLModel, table=True):
    id: str = Field(default_factory=lambda: str(uuid4()), primary_key=True)
    store_id: str = Field(foreign_key="store.id", index=True)

    name: str
    description: str = ""
    category: Optional[str] = None

    #Pricing
    mrp: float = 0
    price: float
    gst: float = Field(default=0, ge=0, le=100)  # percent

    colors: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    sizes: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    # normalized variants, see app.schemas.product_schemas.Variant
    variants: List[dict] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
