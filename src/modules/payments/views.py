"""Payment gateway webhook endpoint."""

from __future__ import annotations

from django.conf import settings
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.core.exceptions import validate_dto
from modules.orders.views import build_transition_service
from modules.payments.dtos import PaymentWebhookDTO
from modules.payments.services import (
    SIGNATURE_HEADER,
    PaymentWebhookService,
    verify_signature,
)


class PaymentWebhookView(APIView):
    """POST /api/v1/payments/webhook/

    Called by the payment gateway; it carries no user credentials and is
    authenticated by its body signature instead.
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_classes: list = []

    def post(self, request: Request) -> Response:
        # The raw body must be read before DRF parses it.
        verify_signature(
            request.body,
            request.headers.get(SIGNATURE_HEADER),
            settings.PAYMENT_WEBHOOK_SECRET,
        )
        dto = validate_dto(PaymentWebhookDTO, request.data)
        service = PaymentWebhookService(transitions=build_transition_service())
        return Response(service.handle(dto))
