"""Order DRF serializers for API output.

The serializer operates at the Interface layer (API Views) and renders
the camelCase JSON of the public API.  Input validation lives in the
Service Layer (``modules.orders.validation``), which reports every
violation of the order contract at once.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for a flower line item."""

    flowerId = serializers.CharField(source="flower_id", read_only=True)
    flowerName = serializers.CharField(source="flower_name", read_only=True)
    price = serializers.DecimalField(
        max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True
    )

    class Meta:
        model = OrderItem
        fields = ["flowerId", "flowerName", "price", "quantity"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items."""

    customerName = serializers.CharField(source="customer_name", read_only=True)
    deliveryAddress = serializers.CharField(source="delivery_address", read_only=True)
    orderItems = OrderItemSerializer(source="items", many=True, read_only=True)
    totalAmount = serializers.DecimalField(
        source="total_amount",
        max_digits=12,
        decimal_places=2,
        coerce_to_string=False,
        read_only=True,
    )
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    deletedAt = serializers.DateTimeField(source="deleted_at", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "customerName",
            "deliveryAddress",
            "orderItems",
            "totalAmount",
            "status",
            "version",
            "createdAt",
            "updatedAt",
            "deletedAt",
        ]
        read_only_fields = fields
