"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in ``OrderService``; input serializers only check
shape, the service decides what is allowed.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import OrderStatus
from modules.orders.models import Order, OrderEvent, OrderItem
from modules.orders.state_machine import next_statuses

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class UpdateOrderStatusSerializer(serializers.Serializer):
    # Free-form so unknown values reach the service and come back as unknown_status
    status = serializers.CharField(max_length=32)
    notes = serializers.CharField(required=False, default="", allow_blank=True, max_length=1000)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(min_length=2, max_length=1000, trim_whitespace=True)


class BulkStatusSerializer(serializers.Serializer):
    order_ids = serializers.ListField(child=serializers.CharField(max_length=64), allow_empty=False)
    status = serializers.CharField(max_length=32)
    notes = serializers.CharField(required=False, default="", allow_blank=True, max_length=1000)


class ItemPreparedSerializer(serializers.Serializer):
    is_prepared = serializers.BooleanField(default=True)


class TrackOrderQuerySerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=20)


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_price",
            "quantity",
            "total",
            "variant",
            "notes",
            "is_prepared",
        ]
        read_only_fields = fields


class OrderEventSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderEvent
        fields = ["id", "event", "data", "actor", "created_at"]
        read_only_fields = fields


class DeliveryAddressField(serializers.Serializer):
    line1 = serializers.CharField()
    line2 = serializers.CharField()
    postal_code = serializers.CharField()
    label = serializers.CharField()
    latitude = serializers.DecimalField(max_digits=9, decimal_places=6, allow_null=True)
    longitude = serializers.DecimalField(max_digits=9, decimal_places=6, allow_null=True)


class OrderSerializer(serializers.ModelSerializer):
    """Full order with items, audit trail and the statuses it can move to next."""

    items = OrderItemSerializer(many=True, read_only=True)
    events = OrderEventSerializer(many=True, read_only=True)
    delivery_address = DeliveryAddressField(read_only=True, allow_null=True)
    allowed_transitions = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "merchant_id",
            "customer_id",
            "status",
            "delivery_method",
            "payment_method",
            "payment_status",
            "subtotal",
            "delivery_fee",
            "discount",
            "tax",
            "total",
            "customer_name",
            "customer_phone",
            "customer_email",
            "delivery_address",
            "delivery_notes",
            "notes",
            "payment_reference",
            "payment_proof_url",
            "payment_confirmed_at",
            "payment_confirmed_by",
            "cancellation_reason",
            "confirmed_at",
            "preparing_at",
            "ready_at",
            "out_for_delivery_at",
            "delivered_at",
            "completed_at",
            "cancelled_at",
            "refunded_at",
            "created_at",
            "updated_at",
            "allowed_transitions",
            "items",
            "events",
        ]
        read_only_fields = fields

    def get_allowed_transitions(self, obj: Order) -> list[str]:
        return next_statuses(obj.status, obj.is_pickup)


class OrderListSerializer(serializers.ModelSerializer):
    """Kanban card: no audit trail."""

    item_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "delivery_method",
            "payment_status",
            "customer_name",
            "customer_phone",
            "total",
            "item_count",
            "created_at",
        ]
        read_only_fields = fields

    def get_item_count(self, obj: Order) -> int:
        return sum(item.quantity for item in obj.items.all())


class OrderTrackingSerializer(serializers.ModelSerializer):
    """What a customer sees on the public tracking page."""

    items = serializers.SerializerMethodField()
    timeline = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "order_number",
            "status",
            "delivery_method",
            "payment_status",
            "subtotal",
            "delivery_fee",
            "discount",
            "tax",
            "total",
            "items",
            "timeline",
            "created_at",
        ]
        read_only_fields = fields

    def get_items(self, obj: Order) -> list[dict]:
        return [
            {"product_name": item.product_name, "quantity": item.quantity, "total": str(item.total)}
            for item in obj.items.all()
        ]

    def get_timeline(self, obj: Order) -> list[dict]:
        timeline = [{"status": OrderStatus.PENDING.value, "at": obj.created_at}]
        for status, field_name in (
            (OrderStatus.CONFIRMED, "confirmed_at"),
            (OrderStatus.PREPARING, "preparing_at"),
            (OrderStatus.READY, "ready_at"),
            (OrderStatus.OUT_FOR_DELIVERY, "out_for_delivery_at"),
            (OrderStatus.DELIVERED, "delivered_at"),
            (OrderStatus.COMPLETED, "completed_at"),
            (OrderStatus.CANCELLED, "cancelled_at"),
            (OrderStatus.REFUNDED, "refunded_at"),
        ):
            stamped = getattr(obj, field_name)
            if stamped:
                timeline.append({"status": status.value, "at": stamped})
        return timeline


class BulkFailureSerializer(serializers.Serializer):
    order_id = serializers.CharField()
    code = serializers.CharField()
    detail = serializers.CharField()


class BulkResultSerializer(serializers.Serializer):
    success_count = serializers.IntegerField()
    failed_count = serializers.IntegerField()
    total_count = serializers.IntegerField()
    failures = BulkFailureSerializer(many=True)
