"""Order DRF serializers for API output.

The serializers operate at the Interface layer (API Views) and only render
model instances.  Input is parsed into Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.models import Order, OrderItem, OrderStatus, OrderStatusHistory

# ---------------------------------------------------------------------------
# Order statuses
# ---------------------------------------------------------------------------


class OrderStatusSummarySerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderStatus
        fields = ["id", "code", "name", "color"]
        read_only_fields = fields


class OrderStatusSerializer(serializers.ModelSerializer):
    """Read serializer for statuses; successors are rendered as ids."""

    can_transition_to = serializers.SerializerMethodField()

    class Meta:
        model = OrderStatus
        fields = [
            "id",
            "code",
            "name",
            "description",
            "color",
            "order",
            "is_active",
            "is_default",
            "can_transition_to",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_can_transition_to(self, obj: OrderStatus) -> list[str]:
        return sorted(str(target_id) for target_id in obj.allowed_transition_ids())


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with product snapshot."""

    product_name = serializers.CharField(source="product.name", read_only=True)
    product_sku = serializers.CharField(source="product.sku", read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "product_sku",
            "quantity",
            "unit_price",
            "tax_rate",
            "subtotal",
        ]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    old_status = serializers.CharField(source="old_status.code", default=None)
    new_status = serializers.CharField(source="new_status.code")

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class ShippingSerializer(serializers.ModelSerializer):
    recipient_name = serializers.CharField(source="shipping_recipient_name")
    phone = serializers.CharField(source="shipping_phone")
    street_address = serializers.CharField(source="shipping_street_address")
    postal_code = serializers.CharField(source="shipping_postal_code")
    additional_info = serializers.CharField(source="shipping_additional_info")
    neighborhood_id = serializers.UUIDField(source="shipping_neighborhood_id")
    neighborhood_name = serializers.CharField(source="shipping_neighborhood_name")
    city_id = serializers.UUIDField(source="shipping_city_id")
    city_name = serializers.CharField(source="shipping_city_name")
    address_id = serializers.UUIDField(source="shipping_address_id")

    class Meta:
        model = Order
        fields = [
            "recipient_name",
            "phone",
            "street_address",
            "postal_code",
            "additional_info",
            "neighborhood_id",
            "neighborhood_name",
            "city_id",
            "city_name",
            "address_id",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items and history."""

    status = OrderStatusSummarySerializer(read_only=True)
    payment_method = serializers.CharField(
        source="payment_method.code", default=None, read_only=True
    )
    delivery_method = serializers.CharField(
        source="delivery_method.code", default=None, read_only=True
    )
    coupon_code = serializers.CharField(
        source="coupon.code", default=None, read_only=True
    )
    shipping = serializers.SerializerMethodField()
    items = OrderItemSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "payment_method",
            "delivery_method",
            "coupon_code",
            "subtotal",
            "tax_rate",
            "tax_amount",
            "discount_rate",
            "discount_amount",
            "total",
            "notes",
            "shipping",
            "created_at",
            "updated_at",
            "items",
            "status_history",
        ]
        read_only_fields = fields

    def get_shipping(self, obj: Order) -> dict | None:
        if not obj.has_shipping:
            return None
        return ShippingSerializer(obj).data


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    status = serializers.CharField(source="status.code", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "total",
            "created_at",
        ]
        read_only_fields = fields
