from .auth import User, SessionToken
from .pricing import Pricing
from .orders import Order, DeletedOrder

__all__ = [
    'User', 'SessionToken',
    'Pricing',
    'Order', 'DeletedOrder',
]
