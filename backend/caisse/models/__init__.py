from .tenancy import Restaurant
from .auth import SessionToken
from .inventory import InventoryItem, StockMovement
from .cash import CashSession, RevenueEntry, ExpenseEntry
from .payments import PlatformPayment
from .audit import AuditEvent

__all__ = [
    'Restaurant',
    'SessionToken',
    'InventoryItem', 'StockMovement',
    'CashSession', 'RevenueEntry', 'ExpenseEntry',
    'PlatformPayment',
    'AuditEvent',
]
