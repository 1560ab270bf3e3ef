import django_filters

from modules.orders.constants import DeliveryMethod, OrderStatus, PaymentStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=OrderStatus.choices)
    delivery_method = django_filters.ChoiceFilter(choices=DeliveryMethod.choices)
    payment_status = django_filters.ChoiceFilter(choices=PaymentStatus.choices)
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")
    min_total = django_filters.NumberFilter(field_name="total", lookup_expr="gte")
    max_total = django_filters.NumberFilter(field_name="total", lookup_expr="lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "delivery_method",
            "payment_status",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
