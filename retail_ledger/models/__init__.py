# retail_ledger/models/__init__.py
from .user import User, UserRole
from .customer import Customer
from .ledger_entry import LedgerEntry, LedgerEntryType, LedgerCategory, PaymentMethod
from .sale import Sale
from .order import Order, OrderStatus, OrderPaymentMethod
from .vendor import Vendor, PurchaseOrder, PurchaseOrderStatus, VendorPayment
from .credit import CreditTransaction, CreditSettlement
from .product import Product, ProductStock, Warehouse
