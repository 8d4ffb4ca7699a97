"""Customer URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.customers.views import AddressViewSet

router = DefaultRouter(trailing_slash=True)
router.register("addresses", AddressViewSet, basename="address")

urlpatterns = router.urls
