from .auth import User, SessionToken
from .catalog import Product
from .distribution import DealerRequest, StockAllocation
from .settings import AppSetting
from .ledger import LedgerEvent

__all__ = [
    'User', 'SessionToken',
    'Product',
    'DealerRequest', 'StockAllocation',
    'AppSetting',
    'LedgerEvent',
]
