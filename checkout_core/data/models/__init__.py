#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from checkout_core.data.models.customer import CustomerModel
from checkout_core.data.models.item import ItemModel, ProductDiscountModel
from checkout_core.data.models.cart import CartModel
from checkout_core.data.models.cart_item import CartItemModel
from checkout_core.data.models.order import OrderModel, OrderItemModel

__all__ = [
    "CustomerModel",
    "ItemModel",
    "ProductDiscountModel",
    "CartModel",
    "CartItemModel",
    "OrderModel",
    "OrderItemModel",
]
