from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.utils import timezone

from modules.customers.dtos import ContactInfoDTO
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.services import CustomerService
from modules.merchants.models import Merchant, MerchantStatus, Product, ProductStatus
from modules.orders.constants import DeliveryMethod, OrderStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.pricing.calculator import calculate_totals, policy_from_merchant
from modules.pricing.dtos import DeliveryContext, FulfilmentMethod, LineItem

# Lifecycle path each seeded pickup order is walked along
_PICKUP_PATHS = [
    [],
    [OrderStatus.CONFIRMED],
    [OrderStatus.CONFIRMED, OrderStatus.PREPARING],
    [OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.READY],
    [OrderStatus.CONFIRMED, OrderStatus.READY, OrderStatus.COMPLETED],
    [OrderStatus.CANCELLED],
]


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        merchant = self._seed_merchant()
        products = self._seed_products(merchant)
        orders_created = self._seed_orders(merchant, products)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"merchant={merchant.slug}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="hawker").exists():
            User.objects.create_user("hawker", password="hawker123")
            created += 1
        return created

    def _seed_merchant(self) -> Merchant:
        self.stdout.write("Creating merchant...")
        owner = get_user_model().objects.get(username="hawker")
        merchant, _ = Merchant.objects.get_or_create(
            slug="ah-hock-chicken-rice",
            defaults={
                "business_name": "Ah Hock Chicken Rice",
                "email": "hello@ahhock.sg",
                "phone": "91234567",
                "status": MerchantStatus.ACTIVE,
                "approved_at": timezone.now(),
                "paynow_number": "91234567",
                "postal_code": "310123",
                "latitude": Decimal("1.332000"),
                "longitude": Decimal("103.848000"),
                "delivery_radius_km": Decimal("10.0"),
                "delivery_fee": Decimal("5.00"),
                "minimum_order": Decimal("10.00"),
                "delivery_settings": {
                    "pricingModel": "ZONE",
                    "freeDeliveryMinimum": "60.00",
                },
                "owner": owner,
            },
        )
        self.stdout.write(self.style.SUCCESS("Creating merchant... Done!"))
        return merchant

    def _seed_products(self, merchant: Merchant) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        menu = [
            ("Roasted Chicken Rice", Decimal("5.50")),
            ("Steamed Chicken Rice", Decimal("5.50")),
            ("Half Chicken", Decimal("16.00")),
            ("Whole Chicken", Decimal("30.00")),
            ("Braised Egg", Decimal("1.20")),
            ("Oyster Sauce Kailan", Decimal("6.00")),
            ("Barley Drink", Decimal("2.00")),
        ]
        for name, price in menu:
            product, _ = Product.objects.get_or_create(
                merchant=merchant,
                name=name,
                defaults={"price": price, "status": ProductStatus.ACTIVE},
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(self, merchant: Merchant, products: list[Product]) -> int:
        self.stdout.write("Creating orders...")
        if merchant.orders.exists():
            self.stdout.write(self.style.WARNING("Skipping orders (merchant already has orders)."))
            return 0

        customers = CustomerService(CustomerDjangoRepository())
        orders = OrderService(OrderDjangoRepository())
        policy = policy_from_merchant(merchant)
        pickup = DeliveryContext(method=FulfilmentMethod.PICKUP)
        guests = [
            ("Tan Wei Ming", "81234567"),
            ("Nur Aisyah", "92345678"),
            ("Rajesh Kumar", "83456789"),
            ("Lim Hui Min", "94567890"),
        ]

        created = 0
        for i in range(12):
            name, phone = random.choice(guests)
            contact = ContactInfoDTO(name=name, phone=phone)
            customer = customers.resolve_customer(contact)
            picked = random.sample(products, k=random.randint(2, 4))
            quantities = [random.randint(1, 3) for _ in picked]
            totals = calculate_totals(
                [LineItem(unit_price=p.price, quantity=q) for p, q in zip(picked, quantities)],
                policy,
                pickup,
            )
            order = orders.create_order(
                CreateOrderDTO(
                    merchant_id=merchant.id,
                    customer_id=customer.id,
                    delivery_method=DeliveryMethod.PICKUP,
                    items=[
                        CreateOrderItemDTO(
                            product_id=p.id, product_name=p.name, product_price=p.price, quantity=q
                        )
                        for p, q in zip(picked, quantities)
                    ],
                    subtotal=totals.subtotal,
                    delivery_fee=totals.delivery_fee,
                    total=totals.total,
                    customer_name=contact.name,
                    customer_phone=contact.phone,
                    notes=f"Seed order {i + 1}",
                ),
                actor="seed",
            )
            for status in _PICKUP_PATHS[i % len(_PICKUP_PATHS)]:
                if status == OrderStatus.CANCELLED:
                    orders.cancel_order(order.id, "Customer changed their mind", actor="seed")
                else:
                    orders.update_status(order.id, status, actor="seed")
            created += 1

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
