"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets, one per
client role:

* ``AdminOrderViewSet`` -> ``/api/orders/`` (back-office)
* ``AppOrderViewSet``   -> ``/api/my-orders/`` (mobile storefront)

Domain exceptions (``OrderError``) are caught and translated into
HTTP responses; the view never swallows generic exceptions.
"""

from __future__ import annotations

from typing import Dict

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.authentication import IsAdminClient, IsAppClient
from modules.orders.constants import ClientRole
from modules.orders.exceptions import OrderError, OrderErrorCode
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import OrderSerializer
from modules.orders.services import OrderService

ERROR_STATUS: Dict[OrderErrorCode, int] = {
    OrderErrorCode.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    OrderErrorCode.STATUS_REQUIRED: status.HTTP_400_BAD_REQUEST,
    OrderErrorCode.INVALID_TRANSITION: status.HTTP_400_BAD_REQUEST,
    OrderErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    OrderErrorCode.FORBIDDEN_FIELD: status.HTTP_403_FORBIDDEN,
    OrderErrorCode.TERMINAL_STATE: status.HTTP_409_CONFLICT,
    OrderErrorCode.DELETE_STATE: status.HTTP_409_CONFLICT,
    OrderErrorCode.CONCURRENT_UPDATE: status.HTTP_409_CONFLICT,
    OrderErrorCode.CONSISTENCY_FAULT: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

STATUS_FILTER = OpenApiParameter(
    name="status",
    description="Case-insensitive status filter (e.g. PENDING or pending).",
    required=False,
    type=str,
)


def error_response(exc: OrderError) -> Response:
    return Response(exc.to_dict(), status=ERROR_STATUS[exc.code])


class _OrderViewSet(GenericViewSet):
    """Shared create/read/update actions.

    Does **not** extend ``ModelViewSet``: all ORM access goes through
    the service/repository layer.  ``role`` decides which update policy
    the service applies.
    """

    queryset = Order.objects.none()
    serializer_class = OrderSerializer
    role: ClientRole

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = OrderService(order_repository=OrderDjangoRepository())

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST: create an order; status is always PENDING."""
        try:
            order = self._service.create_order(request.data)
        except OrderError as exc:
            return error_response(exc)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    @extend_schema(parameters=[STATUS_FILTER])
    def list(self, request: Request) -> Response:
        try:
            orders = self._service.get_all_orders(request.query_params.get("status"))
        except OrderError as exc:
            return error_response(exc)
        return Response(OrderSerializer(orders, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        try:
            order = self._service.get_order_by_id(pk)
        except OrderError as exc:
            return error_response(exc)
        return Response(OrderSerializer(order).data)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        try:
            order = self._service.update_order(pk, request.data, self.role)
        except OrderError as exc:
            return error_response(exc)
        return Response(OrderSerializer(order).data)


class AdminOrderViewSet(_OrderViewSet):
    """Back-office orders: status-only updates and soft deletion."""

    permission_classes = [IsAdminClient]
    role = ClientRole.ADMIN

    @extend_schema(
        parameters=[
            OpenApiParameter(
                name="ignoreState",
                description="Delete even if the order is not CANCELLED.",
                required=False,
                type=bool,
            )
        ]
    )
    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/orders/{pk}/

        Soft-deletes a CANCELLED order; ``?ignoreState=true`` skips
        the status check.
        """
        ignore_state = request.query_params.get("ignoreState", "").lower() == "true"
        try:
            self._service.soft_delete_order(pk, ignore_state=ignore_state)
        except OrderError as exc:
            return error_response(exc)
        return Response({"message": "Order deleted successfully"})


class AppOrderViewSet(_OrderViewSet):
    """Mobile storefront orders: every field but ``status`` is editable."""

    permission_classes = [IsAppClient]
    role = ClientRole.APP
