from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand

from modules.orders.constants import ClientRole, OrderStatus
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.services import OrderService

SAMPLE_ORDERS = [
    (
        "John Doe",
        "123 Main St, City",
        [("1", "Red Rose", Decimal("2.99"), 12)],
        [],
    ),
    (
        "Jane Smith",
        "456 Oak Ave, Town",
        [
            ("2", "White Lily", Decimal("3.99"), 6),
            ("3", "Yellow Tulip", Decimal("1.99"), 8),
        ],
        [OrderStatus.CONFIRMED],
    ),
    (
        "Bob Wilson",
        "789 Pine Rd, Village",
        [("4", "Purple Orchid", Decimal("4.99"), 3)],
        [
            OrderStatus.CONFIRMED,
            OrderStatus.PREPARING,
            OrderStatus.READY,
            OrderStatus.DELIVERED,
        ],
    ),
]


class Command(BaseCommand):
    help = "Seed database with sample flower orders."

    def add_arguments(self, parser):
        parser.add_argument(
            "--clear",
            action="store_true",
            help="Soft-delete every existing order first.",
        )

    def handle(self, *args, **options):
        service = OrderService(order_repository=OrderDjangoRepository())

        if options["clear"]:
            count, _ = Order.objects.alive().delete()
            self.stdout.write(f"Existing orders cleared: {count}")

        self.stdout.write("Creating orders...")
        for customer_name, address, items, path in SAMPLE_ORDERS:
            order = service.create_order(
                {
                    "customerName": customer_name,
                    "deliveryAddress": address,
                    "orderItems": [
                        {
                            "flowerId": flower_id,
                            "flowerName": flower_name,
                            "price": price,
                            "quantity": quantity,
                        }
                        for flower_id, flower_name, price, quantity in items
                    ],
                }
            )
            # Walk the state machine so seeded orders obey the transition table.
            for status in path:
                order = service.update_order(
                    order.id, {"status": status}, ClientRole.ADMIN
                )

        self.stdout.write(
            self.style.SUCCESS(f"Seed completed: orders={len(SAMPLE_ORDERS)}")
        )
