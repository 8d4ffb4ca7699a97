"""Django ORM implementation of the payment method catalog."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from django.core.exceptions import ValidationError
from django.db import transaction

from modules.payments.models import PaymentMethod
from modules.payments.repositories.interfaces import IPaymentMethodRepository


class PaymentMethodDjangoRepository(IPaymentMethodRepository):
    def get_by_id(self, id: str) -> Optional[PaymentMethod]:
        try:
            return PaymentMethod.objects.filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_code(self, code: str) -> Optional[PaymentMethod]:
        return PaymentMethod.objects.filter(code=code.strip().upper()).first()

    def list(self, filters: Optional[Dict[str, Any]] = None) -> List[PaymentMethod]:
        queryset = PaymentMethod.objects.all()
        if filters:
            queryset = queryset.filter(**filters)
        return list(queryset)

    @transaction.atomic
    def save(self, entity: PaymentMethod) -> PaymentMethod:
        entity.save()
        return entity

    @transaction.atomic
    def delete(self, id: str) -> bool:
        deleted, _ = PaymentMethod.objects.filter(id=id).delete()
        return bool(deleted)
