from .catalog import Product, StockPurchase
from .sales import Sale, SaleItem
from .customers import Customer
from .returns import Return
from .auth import AccessCredential, SecurityEvent, SessionToken

__all__ = [
    'Product', 'StockPurchase',
    'Sale', 'SaleItem',
    'Customer',
    'Return',
    'AccessCredential', 'SecurityEvent', 'SessionToken',
]

# Business tables in dependency order; the JSON backup and wipe use this list
BUSINESS_TABLES = (
    ("products", Product),
    ("customers", Customer),
    ("sales", Sale),
    ("sale_items", SaleItem),
    ("returns", Return),
    ("stock_purchases", StockPurchase),
)
