from app.models.order import OrderStatus

# forward-only, set by vendors / operators
ALLOWED_TRANSITIONS = {
    OrderStatus.ORDER_PLACED: [OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED],
    OrderStatus.PROCESSING: [OrderStatus.SHIPPED, OrderStatus.DELIVERED],
    OrderStatus.SHIPPED: [OrderStatus.DELIVERED],
    OrderStatus.DELIVERED: [],
}
