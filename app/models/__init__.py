from app.models.user import User
from app.models.store import Store
from app.models.product import Product
from app.models.coupon import Coupon
from app.models.address import Address
from app.models.cart import CartItem
from app.models.order import Order, OrderStatus, PaymentMethod
from app.models.order_item import OrderItem
from app.models.order_event import OrderEvent, OrderEventType

# add ALL models here
