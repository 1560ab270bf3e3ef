from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from modules.checkout.services import CheckoutService
from modules.checkout.store import CacheCheckoutSessionStore
from modules.customers.models import Customer
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.merchants.models import Merchant, MerchantStatus, Product, ProductStatus
from modules.merchants.repositories.django_repository import (
    MerchantDjangoRepository,
    ProductDjangoRepository,
)
from modules.orders.constants import DeliveryMethod, PaymentStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.services import PaymentService


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Checkout sessions live in the cache; start every test without any."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Merchants and catalog
# ---------------------------------------------------------------------------


@pytest.fixture()
def merchant_owner():
    return get_user_model().objects.create_user("hawker", password="hawker-pass-123")


@pytest.fixture()
def merchant(merchant_owner):
    return Merchant.objects.create(
        business_name="Ah Hock Chicken Rice",
        email="hello@ahhock.sg",
        status=MerchantStatus.ACTIVE,
        approved_at=timezone.now(),
        paynow_number="91234567",
        postal_code="310123",
        delivery_fee=Decimal("5.00"),
        minimum_order=Decimal("0.00"),
        owner=merchant_owner,
    )


@pytest.fixture()
def other_merchant():
    owner = get_user_model().objects.create_user("rival", password="rival-pass-123")
    return Merchant.objects.create(
        business_name="Rival Noodles",
        status=MerchantStatus.ACTIVE,
        approved_at=timezone.now(),
        paynow_number="98765432",
        postal_code="520201",
        owner=owner,
    )


@pytest.fixture()
def products(merchant):
    return [
        Product.objects.create(merchant=merchant, name="Roasted Chicken Rice", price=Decimal("5.50")),
        Product.objects.create(merchant=merchant, name="Half Chicken", price=Decimal("16.00")),
        Product.objects.create(merchant=merchant, name="Barley Drink", price=Decimal("2.00")),
    ]


@pytest.fixture()
def inactive_product(merchant):
    return Product.objects.create(
        merchant=merchant,
        name="Seasonal Soup",
        price=Decimal("4.00"),
        status=ProductStatus.INACTIVE,
    )


# ---------------------------------------------------------------------------
# Authenticated clients
# ---------------------------------------------------------------------------


@pytest.fixture()
def merchant_client(merchant):
    client = APIClient()
    client.force_authenticate(user=merchant.owner)
    return client


@pytest.fixture()
def other_merchant_client(other_merchant):
    client = APIClient()
    client.force_authenticate(user=other_merchant.owner)
    return client


@pytest.fixture()
def admin_client():
    admin = get_user_model().objects.create_superuser("platform-admin", password="admin-pass-123")
    client = APIClient()
    client.force_authenticate(user=admin)
    return client


# ---------------------------------------------------------------------------
# Services and factories
# ---------------------------------------------------------------------------


@pytest.fixture()
def order_service():
    return OrderService(order_repository=OrderDjangoRepository())


@pytest.fixture()
def payment_service():
    return PaymentService(
        payment_repository=PaymentDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        merchant_repository=MerchantDjangoRepository(),
    )


@pytest.fixture()
def checkout_service():
    return CheckoutService(
        merchant_repository=MerchantDjangoRepository(),
        product_repository=ProductDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        order_repository=OrderDjangoRepository(),
        payment_repository=PaymentDjangoRepository(),
        session_store=CacheCheckoutSessionStore(),
    )


@pytest.fixture()
def customer():
    return Customer.objects.create(name="Tan Wei Ming", phone="81234567", email="weiming@example.sg")


@pytest.fixture()
def make_order(order_service, merchant, products, customer):
    """Create an order through the service, the way checkout completion does."""

    def _make(
        delivery_method=DeliveryMethod.PICKUP,
        target_merchant=None,
        payment_status=PaymentStatus.PENDING,
        quantity=2,
        **overrides,
    ):
        owner = target_merchant or merchant
        product = products[0] if owner == merchant else Product.objects.create(
            merchant=owner, name="House Special", price=Decimal("5.50")
        )
        subtotal = product.price * quantity
        delivery_fee = Decimal("5.00") if delivery_method == DeliveryMethod.DELIVERY else Decimal("0.00")
        data = {
            "merchant_id": owner.id,
            "customer_id": customer.id,
            "delivery_method": delivery_method,
            "payment_status": payment_status,
            "items": [
                CreateOrderItemDTO(
                    product_id=product.id,
                    product_name=product.name,
                    product_price=product.price,
                    quantity=quantity,
                )
            ],
            "subtotal": subtotal,
            "delivery_fee": delivery_fee,
            "total": subtotal + delivery_fee,
            "customer_name": customer.name,
            "customer_phone": customer.phone,
            "customer_email": customer.email,
            "payment_reference": "PAYTEST0001",
        }
        data.update(overrides)
        return order_service.create_order(CreateOrderDTO(**data), actor="customer")

    return _make
