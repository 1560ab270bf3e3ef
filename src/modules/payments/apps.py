from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "modules.payments"
    label = "payments"
    verbose_name = "PayNow payments"

    def ready(self) -> None:
        from modules.payments.handlers import register_handlers
        from shared.infrastructure.bus import event_bus

        register_handlers(event_bus)
