from .inventory import Product, StockMovement
from .transactions import (
    TransactionKind,
    SALE_STATUS_COMPLETED,
    LineItemMixin,
    Sale,
    SaleItem,
    ServiceRecord,
    ServicePart,
)
from .expenses import Expense, EXPENSE_TYPES

__all__ = [
    'Product', 'StockMovement',
    'TransactionKind', 'SALE_STATUS_COMPLETED', 'LineItemMixin',
    'Sale', 'SaleItem', 'ServiceRecord', 'ServicePart',
    'Expense', 'EXPENSE_TYPES',
]
