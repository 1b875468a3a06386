from sqlalchemy.orm import sessionmaker

from retail_ledger.stores.credit import CreditStore, CustomerStore
from retail_ledger.stores.inventory import ProductStore, UserStore
from retail_ledger.stores.ledger import LedgerStore
from retail_ledger.stores.purchasing import PurchaseOrderStore, VendorStore
from retail_ledger.stores.sales import OrderStore, SaleStore


class StoreRegistry:
    """All store adapters bound to one session factory."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory
        self.ledger = LedgerStore(session_factory)
        self.sales = SaleStore(session_factory)
        self.orders = OrderStore(session_factory)
        self.purchase_orders = PurchaseOrderStore(session_factory)
        self.credits = CreditStore(session_factory)
        self.customers = CustomerStore(session_factory)
        self.vendors = VendorStore(session_factory)
        self.products = ProductStore(session_factory)
        self.users = UserStore(session_factory)
