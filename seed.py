"""Fill a development database with a few weeks of shop activity, posted through the domain services."""

import random
from decimal import Decimal

from faker import Faker

from retail_ledger.core.config import get_settings
from retail_ledger.core.database import Base, get_db_engine, get_session_factory
from retail_ledger.models import (
    Customer,
    CreditSettlement,
    CreditTransaction,
    LedgerCategory,
    LedgerEntry,
    Order,
    OrderStatus,
    PaymentMethod,
    Product,
    ProductStock,
    PurchaseOrder,
    Sale,
    User,
    UserRole,
    Vendor,
    VendorPayment,
    Warehouse,
)
from retail_ledger.schemas.sales import OrderCreate, OrderItemRecord, SaleCreate, SaleItemRecord
from retail_ledger.schemas.vendor import PurchaseOrderItem, ReceivedItem
from retail_ledger.services.credit_service import CreditService
from retail_ledger.services.ledger_service import LedgerService
from retail_ledger.services.order_service import OrderService
from retail_ledger.services.sale_service import SaleService
from retail_ledger.services.vendor_service import VendorService
from retail_ledger.stores import StoreRegistry

fake = Faker()
settings = get_settings()
Base.metadata.create_all(bind=get_db_engine())
SessionLocal = get_session_factory()
stores = StoreRegistry(SessionLocal)


def money(low: int, high: int) -> Decimal:
    return Decimal(random.randint(low * 100, high * 100)) / 100


print("🔄 Clearing existing data...")
with SessionLocal() as db:
    # bulk deletes bypass the ledger's per-row immutability hooks
    for model in (
        CreditSettlement, CreditTransaction, Sale, Order, VendorPayment, PurchaseOrder,
        ProductStock, Product, Warehouse, Vendor, Customer, User, LedgerEntry,
    ):
        db.query(model).delete()
    db.commit()
print("✅ Data cleared.")

print("🔄 Creating users, customers, vendors, products...")
with SessionLocal() as db:
    users = [User(id="USR-ADMIN001", email="admin@example.com", display_name="Admin", role=UserRole.admin)]
    users += [
        User(id=f"USR-STAFF{i:03d}", email=fake.unique.email(), display_name=fake.name(), role=UserRole.staff)
        for i in range(1, 4)
    ]
    customers = [
        Customer(name=fake.name(), phone=''.join(filter(str.isdigit, fake.phone_number()))[:20])
        for _ in range(15)
    ]
    vendors = [Vendor(company_name=fake.company(), contact_person=fake.name()) for _ in range(5)]
    warehouse = Warehouse(name="Main Store")
    db.add_all(users + customers + vendors + [warehouse])
    db.flush()

    products = []
    for _ in range(20):
        cost = money(50, 500)
        product = Product(
            sku=fake.unique.bothify("SKU-####"),
            name=fake.word().capitalize(),
            price=cost * Decimal("1.5"),
            cost_price=cost,
        )
        db.add(product)
        db.flush()
        db.add(ProductStock(product_id=product.id, warehouse_id=warehouse.id, quantity=random.randint(50, 200)))
        products.append((product.id, product.name, product.sku, product.price, cost))
    db.commit()

    user_ids = [u.id for u in users]
    customer_ids = [c.id for c in customers]
    vendor_ids = [v.id for v in vendors]
    warehouse_id = warehouse.id
print(f"✅ Seeded {len(user_ids)} users, {len(customer_ids)} customers, {len(vendor_ids)} vendors, {len(products)} products")

sale_service = SaleService(stores, settings)
order_service = OrderService(stores)
vendor_service = VendorService(stores, settings)
credit_service = CreditService(stores, settings)
ledger_service = LedgerService(stores)

print("🔄 Creating purchase orders...")
for _ in range(8):
    picked = random.sample(products, 3)
    po = vendor_service.create_purchase_order(
        random.choice(vendor_ids),
        [PurchaseOrderItem(product_id=p[0], product_name=p[1], quantity=random.randint(5, 30), unit_price=p[4])
         for p in picked],
        created_by=random.choice(user_ids),
    )
    if random.random() < 0.75:
        vendor_service.receive_purchase_order(
            po.id,
            [ReceivedItem(product_id=item.product_id, received_quantity=item.quantity, warehouse_id=warehouse_id)
             for item in po.items],
            received_by=random.choice(user_ids),
        )

print("🔄 Creating POS sales...")
for _ in range(40):
    pid, name, sku, price, _cost = random.choice(products)
    quantity = random.randint(1, 4)
    total = price * quantity
    on_credit = random.random() < 0.2
    paid = (total * Decimal("0.4")).quantize(Decimal("0.01")) if on_credit else total
    sale_service.create_sale(SaleCreate(
        items=[SaleItemRecord(product_id=pid, product_name=name, sku=sku, quantity=quantity,
                              unit_price=price, subtotal=total)],
        subtotal=total,
        total=total,
        paid_amount=paid,
        payment_method=PaymentMethod.CREDIT if on_credit else random.choice(
            [PaymentMethod.CASH, PaymentMethod.BANK_TRANSFER, PaymentMethod.FONE_PAY]
        ),
        customer_id=random.choice(customer_ids) if on_credit or random.random() < 0.5 else None,
        performed_by=random.choice(user_ids),
    ))

print("🔄 Creating online orders...")
for _ in range(15):
    pid, name, sku, price, _cost = random.choice(products)
    quantity = random.randint(1, 3)
    total = price * quantity
    order = order_service.create_order(OrderCreate(
        items=[OrderItemRecord(product_id=pid, product_name=name, sku=sku, quantity=quantity,
                               unit_price=price, subtotal=total)],
        subtotal=total,
        total=total,
        customer_name=fake.name(),
    ))
    status = random.choice([OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.COMPLETED, OrderStatus.CANCELLED])
    if status != OrderStatus.PENDING:
        if status == OrderStatus.COMPLETED:
            order_service.update_order_status(order.id, OrderStatus.CONFIRMED, random.choice(user_ids))
        order_service.update_order_status(order.id, status, random.choice(user_ids))

print("🔄 Settling some credits and vendor balances...")
for credit in credit_service.get_outstanding_credits()[:4]:
    credit_service.settle(credit.id, (credit.due_amount / 2).quantize(Decimal("0.01")), random.choice(user_ids))
for vendor in vendor_service.get_vendors():
    if vendor.balance > 0:
        vendor_service.settle_payment(vendor.id, vendor.balance, PaymentMethod.BANK_TRANSFER, "USR-ADMIN001")

print("🔄 Posting running expenses...")
for category in (LedgerCategory.RENT, LedgerCategory.SALARY, LedgerCategory.UTILITY):
    ledger_service.create_expense(category, money(1000, 30000), f"{category.value.title()} {fake.month_name()}", "USR-ADMIN001")

print("✅ Seed complete")
