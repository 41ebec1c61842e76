from greenleaf.models.strain import Strain, StrainType
from greenleaf.models.inventory import Inventory
from greenleaf.models.cart import Cart, CartItem
from greenleaf.models.order import Order, OrderItem, OrderStatus

__all__ = ["Strain", "StrainType", "Inventory", "Cart", "CartItem", "Order", "OrderItem", "OrderStatus"]
