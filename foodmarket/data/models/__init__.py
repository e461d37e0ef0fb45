#import wszystkich modeli zeby SQLAlchemy je zarejestrowal w base metadata

from foodmarket.data.models.category import CategoryModel
from foodmarket.data.models.food import FoodModel
from foodmarket.data.models.cart import CartModel
from foodmarket.data.models.cart_item import CartItemModel
from foodmarket.data.models.payment import PaymentModel
from foodmarket.data.models.order import OrderModel

__all__ = [
    "CategoryModel",
    "FoodModel",
    "CartModel",
    "CartItemModel",
    "PaymentModel",
    "OrderModel",
]
