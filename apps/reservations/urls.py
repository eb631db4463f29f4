"""URL routing for the reservation engine."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import ReservationConfigView, ReservationViewSet

router = DefaultRouter()
router.register(r"", ReservationViewSet, basename="reservation")

urlpatterns = [
    path("config/", ReservationConfigView.as_view(), name="reservation-config"),
    path("", include(router.urls)),
]
