"""Order URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.orders.views import AdminOrderViewSet, AppOrderViewSet

router = DefaultRouter(trailing_slash=True)
router.register("orders", AdminOrderViewSet, basename="admin-order")
router.register("my-orders", AppOrderViewSet, basename="app-order")

urlpatterns = router.urls
