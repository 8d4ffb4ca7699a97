"""Address book API views.

Exposes ``AddressService`` for the authenticated customer.  Domain errors
propagate to ``modules.core.exceptions.api_exception_handler``.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.exceptions import validate_dto
from modules.customers.dtos import CreateAddressDTO
from modules.customers.models import Address
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.customers.serializers import AddressSerializer
from modules.customers.services import AddressService


class AddressViewSet(GenericViewSet):
    """ViewSet for the caller's own addresses."""

    queryset = Address.objects.none()
    serializer_class = AddressSerializer
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = AddressService(repository=CustomerDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/addresses/"""
        addresses = self._service.list_addresses(request.user.pk)
        return Response(AddressSerializer(addresses, many=True).data)

    def create(self, request: Request) -> Response:
        """POST /api/v1/addresses/"""
        dto = validate_dto(CreateAddressDTO, request.data)
        address = self._service.create_address(request.user.pk, dto)
        return Response(AddressSerializer(address).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="set-default")
    def set_default(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/addresses/{pk}/set-default/"""
        address = self._service.set_default_address(request.user.pk, str(pk))
        return Response(AddressSerializer(address).data)
