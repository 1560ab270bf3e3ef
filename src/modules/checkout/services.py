"""Checkout service layer (Use Cases).

A checkout session freezes a priced cart for a limited time.  Completing
it creates the order exactly once: the session store hands out a single
claim, and everything the order needs (customer, address, order, items,
payment row, audit entry, outbox event) is written in one transaction.
If that transaction fails the claim is released and the session stays
pending, so the customer can retry.
"""

from __future__ import annotations

import secrets
import string
from datetime import timedelta
from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional

import structlog
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from modules.checkout.dtos import (
    CheckoutItemInput,
    CheckoutSession,
    CheckoutSessionOutputDTO,
    CheckoutStatus,
    CompletedCheckoutDTO,
    MerchantSnapshot,
    SessionItem,
)
from modules.checkout.exceptions import (
    CheckoutSessionCompleted,
    CheckoutSessionExpired,
    CheckoutSessionNotFound,
    DeliveryMethodUnavailable,
    EmptyCart,
)
from modules.customers.services import CustomerService
from modules.merchants.exceptions import (
    MerchantNotAcceptingOrders,
    MerchantNotFound,
    ProductNotFound,
)
from modules.orders.constants import DeliveryMethod, PaymentMethod, PaymentStatus
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.services import OrderService
from modules.payments.paynow import build_paynow_payload
from modules.pricing.calculator import (
    calculate_delivery_fee,
    calculate_subtotal,
    calculate_totals,
    ensure_minimum_order,
    policy_from_settings,
    qualifies_for_free_delivery,
    to_money,
)
from modules.pricing.dtos import DeliveryContext, DeliveryQuote, FulfilmentMethod, LineItem
from modules.pricing.exceptions import DeliveryNotOffered, OutsideDeliveryRadius
from modules.pricing.geo import (
    estimate_delivery_minutes,
    haversine_km,
    is_special_area,
    normalise_postal_code,
    resolve_zone,
)

if TYPE_CHECKING:
    from modules.checkout.store import ICheckoutSessionStore
    from modules.customers.dtos import ContactInfoDTO, DeliveryAddressDTO
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.merchants.repositories.interfaces import (
        IMerchantRepository,
        IProductRepository,
    )
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.payments.repositories.interfaces import IPaymentRepository

logger = structlog.get_logger(__name__)

PAYMENT_REFERENCE_PREFIX = "PAY"
_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits


def generate_payment_reference() -> str:
    return PAYMENT_REFERENCE_PREFIX + "".join(
        secrets.choice(_REFERENCE_ALPHABET) for _ in range(8)
    )


class CheckoutService:
    """Application service for the storefront checkout.

    Receives repositories and the session store via constructor
    injection (DIP).
    """

    def __init__(
        self,
        merchant_repository: IMerchantRepository,
        product_repository: IProductRepository,
        customer_repository: ICustomerRepository,
        order_repository: IOrderRepository,
        payment_repository: IPaymentRepository,
        session_store: ICheckoutSessionStore,
    ) -> None:
        self._merchant_repo = merchant_repository
        self._product_repo = product_repository
        self._customer_repo = customer_repository
        self._payment_repo = payment_repository
        self._store = session_store
        self._customers = CustomerService(customer_repository)
        self._orders = OrderService(order_repository)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(
        self, merchant_id: Any, items: List[CheckoutItemInput]
    ) -> CheckoutSessionOutputDTO:
        """Price a cart against the live catalog and hold it for the session TTL.

        Raises:
            EmptyCart: no items.
            MerchantNotFound: unknown or deleted merchant.
            MerchantNotAcceptingOrders: merchant not approved or paused.
            ProductNotFound: an item is missing, inactive or another merchant's.
            MinimumOrderNotMet: subtotal below the merchant minimum.
        """
        if not items:
            raise EmptyCart(attr="items")

        merchant = self._merchant_repo.get_alive(str(merchant_id))
        if not merchant:
            raise MerchantNotFound(f"Merchant {merchant_id} not found.", attr="merchant_id")
        if not merchant.is_open_for_orders:
            raise MerchantNotAcceptingOrders()

        requested = [str(item.product_id) for item in items]
        products = self._product_repo.get_available_for_merchant(str(merchant.id), requested)
        missing = sorted({product_id for product_id in requested if product_id not in products})
        if missing:
            raise ProductNotFound(
                f"Some products are not available: {', '.join(missing)}.",
                attr="items",
                product_ids=missing,
            )

        session_items = []
        for item in items:
            product = products[str(item.product_id)]
            session_items.append(
                SessionItem(
                    product_id=product.id,
                    product_name=product.name,
                    product_price=to_money(product.price),
                    quantity=item.quantity,
                    total=to_money(product.price * item.quantity),
                    variant=item.variant,
                    notes=item.notes,
                )
            )

        subtotal = calculate_subtotal(
            LineItem(unit_price=item.product_price, quantity=item.quantity)
            for item in session_items
        )
        ensure_minimum_order(subtotal, merchant.minimum_order)

        now = timezone.now()
        session = CheckoutSession(
            session_id=secrets.token_urlsafe(24),
            merchant_id=merchant.id,
            merchant=MerchantSnapshot.from_merchant(merchant),
            items=session_items,
            subtotal=subtotal,
            payment_reference=generate_payment_reference(),
            created_at=now,
            expires_at=now + timedelta(minutes=settings.CHECKOUT_SESSION_TTL_MINUTES),
        )
        self._store.save(session)

        logger.info(
            "checkout.session_created",
            session_id=session.session_id,
            merchant_id=str(merchant.id),
            item_count=len(session_items),
            subtotal=str(subtotal),
        )
        return CheckoutSessionOutputDTO.from_session(session)

    def get_session(self, session_id: str) -> CheckoutSessionOutputDTO:
        return CheckoutSessionOutputDTO.from_session(self._load(session_id))

    def complete(
        self,
        session_id: str,
        contact: ContactInfoDTO,
        delivery_address: Optional[DeliveryAddressDTO] = None,
        delivery_notes: str = "",
        payment_proof_url: Optional[str] = None,
    ) -> CompletedCheckoutDTO:
        """Turn a pending session into an order.

        Supplying a delivery address makes it a DELIVERY order; without
        one it is PICKUP.

        Raises:
            CheckoutSessionNotFound / CheckoutSessionExpired: no usable session.
            CheckoutSessionCompleted: already completed, or being completed.
            DeliveryMethodUnavailable: the merchant does not offer that method.
            OutsideDeliveryRadius: the address is beyond the merchant's radius.
        """
        session = self._load(session_id)
        if session.is_completed:
            raise CheckoutSessionCompleted(order_number=session.order_number)
        if not self._store.claim(session_id):
            logger.warning("checkout.claim_rejected", session_id=session_id)
            raise CheckoutSessionCompleted()

        try:
            # Re-read under the claim: a previous holder may have finished meanwhile
            session = self._load(session_id)
            if session.is_completed:
                raise CheckoutSessionCompleted(order_number=session.order_number)
            result = self._place_order(
                session, contact, delivery_address, delivery_notes, payment_proof_url
            )
        except Exception:
            self._store.release_claim(session_id)
            raise

        self._store.save(
            session.model_copy(
                update={
                    "status": CheckoutStatus.COMPLETED,
                    "order_id": result.order_id,
                    "order_number": result.order_number,
                }
            )
        )
        logger.info(
            "checkout.completed",
            session_id=session_id,
            order_id=str(result.order_id),
            order_number=result.order_number,
        )
        return result

    # ------------------------------------------------------------------
    # Delivery quotes
    # ------------------------------------------------------------------

    def quote_delivery_fee(
        self,
        merchant_id: Any,
        postal_code: str,
        subtotal: Decimal,
        latitude: Optional[Decimal] = None,
        longitude: Optional[Decimal] = None,
    ) -> DeliveryQuote:
        merchant = self._merchant_repo.get_alive(str(merchant_id))
        if not merchant:
            raise MerchantNotFound(f"Merchant {merchant_id} not found.", attr="merchant_id")
        if not merchant.delivery_enabled:
            raise DeliveryNotOffered()

        snapshot = MerchantSnapshot.from_merchant(merchant)
        policy = policy_from_settings(snapshot.delivery_settings, snapshot.delivery_fee)
        context = self._delivery_context(snapshot, postal_code, latitude, longitude)
        amount = to_money(subtotal)
        fee = calculate_delivery_fee(amount, policy, context)

        eta_min = eta_max = None
        if context.distance_km is not None:
            eta_min, eta_max = estimate_delivery_minutes(
                context.distance_km, snapshot.preparation_minutes
            )

        return DeliveryQuote(
            fee=fee,
            pricing_model=policy.pricing_model,
            zone=context.zone,
            is_special_area=context.is_special_area,
            distance_km=context.distance_km,
            estimated_minutes_min=eta_min,
            estimated_minutes_max=eta_max,
            free_delivery_applied=qualifies_for_free_delivery(amount, policy),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _load(self, session_id: str) -> CheckoutSession:
        session = self._store.get(session_id)
        if session is None:
            raise CheckoutSessionNotFound()
        if not session.is_completed and session.is_expired(timezone.now()):
            self._store.delete(session_id)
            raise CheckoutSessionExpired()
        return session

    def _delivery_context(
        self,
        merchant: MerchantSnapshot,
        postal_code: str,
        latitude: Optional[Decimal] = None,
        longitude: Optional[Decimal] = None,
    ) -> DeliveryContext:
        postal_code = normalise_postal_code(postal_code)
        special_prefixes = settings.DELIVERY_SPECIAL_AREA_SECTORS

        distance = None
        if merchant.has_coordinates and latitude is not None and longitude is not None:
            distance = haversine_km(merchant.latitude, merchant.longitude, latitude, longitude)
            radius = merchant.delivery_radius_km
            if radius is not None and distance > radius:
                raise OutsideDeliveryRadius(
                    f"The address is {distance} km away; this merchant delivers within {radius} km.",
                    attr="delivery_address",
                    distance_km=str(distance),
                )

        return DeliveryContext(
            method=FulfilmentMethod.DELIVERY,
            distance_km=distance,
            zone=resolve_zone(merchant.postal_code or None, postal_code, special_prefixes),
            is_special_area=is_special_area(postal_code, special_prefixes),
        )

    def _place_order(
        self,
        session: CheckoutSession,
        contact: ContactInfoDTO,
        delivery_address: Optional[DeliveryAddressDTO],
        delivery_notes: str,
        payment_proof_url: Optional[str],
    ) -> CompletedCheckoutDTO:
        merchant = session.merchant
        if delivery_address is not None:
            method = DeliveryMethod.DELIVERY
            if not merchant.delivery_enabled:
                raise DeliveryMethodUnavailable(
                    "This merchant does not offer delivery.", attr="delivery_address"
                )
            context = self._delivery_context(
                merchant,
                delivery_address.postal_code,
                delivery_address.latitude,
                delivery_address.longitude,
            )
        else:
            method = DeliveryMethod.PICKUP
            if not merchant.pickup_enabled:
                raise DeliveryMethodUnavailable(
                    "This merchant does not offer pickup; add a delivery address.",
                    attr="delivery_address",
                )
            context = DeliveryContext(method=FulfilmentMethod.PICKUP)

        policy = policy_from_settings(merchant.delivery_settings, merchant.delivery_fee)
        totals = calculate_totals(
            [LineItem(unit_price=item.product_price, quantity=item.quantity) for item in session.items],
            policy,
            context,
        )
        ensure_minimum_order(totals.subtotal, merchant.minimum_order)
        payment_status = PaymentStatus.PROCESSING if payment_proof_url else PaymentStatus.PENDING

        with transaction.atomic():
            customer = self._customers.resolve_customer(contact)
            address = (
                self._customer_repo.add_address(customer, delivery_address)
                if delivery_address is not None
                else None
            )
            order = self._orders.create_order(
                CreateOrderDTO(
                    merchant_id=merchant.id,
                    customer_id=customer.id,
                    delivery_method=method,
                    payment_method=PaymentMethod.PAYNOW,
                    payment_status=payment_status,
                    items=[
                        CreateOrderItemDTO(
                            product_id=item.product_id,
                            product_name=item.product_name,
                            product_price=item.product_price,
                            quantity=item.quantity,
                            variant=item.variant,
                            notes=item.notes,
                        )
                        for item in session.items
                    ],
                    subtotal=totals.subtotal,
                    delivery_fee=totals.delivery_fee,
                    discount=totals.discount,
                    tax=totals.tax,
                    total=totals.total,
                    customer_name=contact.name,
                    customer_phone=contact.phone,
                    customer_email=contact.email or "",
                    delivery_address_id=address.id if address else None,
                    delivery_notes=delivery_notes or "",
                    payment_reference=session.payment_reference,
                    payment_proof_url=payment_proof_url or "",
                ),
                actor="customer",
            )
            self._payment_repo.create(order.id, totals.total, PaymentMethod.PAYNOW, payment_status)

            paynow_payload = None
            if merchant.paynow_number:
                paynow_payload = build_paynow_payload(
                    merchant.paynow_number,
                    amount=totals.total,
                    reference=session.payment_reference,
                    merchant_name=merchant.business_name,
                    merchant_city=settings.PAYNOW_MERCHANT_CITY,
                )

        return CompletedCheckoutDTO(
            order_id=order.id,
            order_number=order.order_number,
            total=totals.total,
            payment_reference=session.payment_reference,
            paynow_payload=paynow_payload,
        )
