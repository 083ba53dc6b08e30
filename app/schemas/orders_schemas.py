from pydantic import BaseModel, ConfigDict, Field

from app.models.order import OrderStatus


class OrderStatusUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    order_id: str = Field(alias="orderId", min_length=1)
    status: OrderStatus
