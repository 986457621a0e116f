from .users import User
from .catalog import Product, PriceEntry, StockMovement
from .shopping import CartLine, Favorite
from .orders import Order, OrderLine, Payment

__all__ = [
    'User',
    'Product', 'PriceEntry', 'StockMovement',
    'CartLine', 'Favorite',
    'Order', 'OrderLine', 'Payment',
]
