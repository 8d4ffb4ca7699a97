"""Customer DRF serializers for API output.

Input is parsed into Pydantic DTOs from ``dtos.py``; these serializers only
render model instances.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.customers.models import Address


class AddressSerializer(serializers.ModelSerializer):
    """Read serializer for saved addresses with locality names."""

    neighborhood_name = serializers.CharField(
        source="neighborhood.name", read_only=True
    )
    city_name = serializers.CharField(source="city.name", read_only=True)

    class Meta:
        model = Address
        fields = [
            "id",
            "alias",
            "recipient_name",
            "phone",
            "street_address",
            "neighborhood_id",
            "neighborhood_name",
            "city_id",
            "city_name",
            "postal_code",
            "additional_info",
            "is_default",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
