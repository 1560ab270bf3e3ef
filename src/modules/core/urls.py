from django.urls import path

from modules.core.views import WhoAmIView, health_check

urlpatterns = [
    path("health", health_check, name="health_check"),
    path("api/v1/me", WhoAmIView.as_view(), name="whoami"),
]
