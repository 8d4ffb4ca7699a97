"""Django ORM implementation of the delivery method catalog."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from modules.delivery.models import DeliveryMethod
from modules.delivery.repositories.interfaces import IDeliveryMethodRepository


class DeliveryMethodDjangoRepository(IDeliveryMethodRepository):
    def get_by_id(self, id: str) -> Optional[DeliveryMethod]:
        try:
            return DeliveryMethod.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_code(self, code: str) -> Optional[DeliveryMethod]:
        return DeliveryMethod.objects.filter(code=code.strip().upper()).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[DeliveryMethod]:
        queryset = DeliveryMethod.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: DeliveryMethod) -> DeliveryMethod:
        entity.save()
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        deleted, _ = DeliveryMethod.objects.filter(id=id).delete()
        return bool(deleted)
