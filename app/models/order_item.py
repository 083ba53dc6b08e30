from sqlmodel import SQLModel, Field , Relationship
from typing import Optional , TYPE_CHECKING

if TYPE_CHECKING:
    from app.models.order import Order

class OrderItem(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: str = Field(foreign_key="order.id", index=True)
    product_id: str = Field(foreign_key="product.id")

    quantity: int
    # point-in-time snapshot, not re-read from the catalog
    price: float
    gst_percent: float
    gst_amount: float

    order: Optional["Order"] = Relationship(back_populates="items")
