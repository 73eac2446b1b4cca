from .tenancy import Restaurant, RestaurantCustomization
from .auth import User, SessionToken
from .security import SecurityEvent
from .inventory import Product, StockMovement
from .sales import Sale, SaleItem
from .printers import Printer
from .subscriptions import Subscription

__all__ = [
    'Restaurant', 'RestaurantCustomization',
    'User', 'SessionToken', 'SecurityEvent',
    'Product', 'StockMovement',
    'Sale', 'SaleItem',
    'Printer',
    'Subscription',
]
