import pytest
from django.core.management import call_command

from modules.coupons.models import Coupon
from modules.delivery.models import DeliveryMethod
from modules.orders.models import OrderStatus
from modules.payments.models import PaymentMethod
from modules.products.models import Product

pytestmark = pytest.mark.integration


class TestSeedData:
    def test_seeds_status_graph(self):
        call_command("seed_data")

        assert OrderStatus.objects.count() == 8
        default = OrderStatus.objects.get(is_default=True)
        assert default.code == "PENDING"
        successors = set(default.can_transition_to.values_list("code", flat=True))
        assert successors == {"AWAITING_PAYMENT", "CONFIRMED", "CANCELLED"}

    def test_is_idempotent(self):
        call_command("seed_data")
        call_command("seed_data")

        assert OrderStatus.objects.count() == 8
        assert OrderStatus.objects.filter(is_default=True).count() == 1
        assert PaymentMethod.objects.count() == 3
        assert DeliveryMethod.objects.count() == 2
        assert Product.objects.count() == 8
        assert Coupon.objects.filter(code="BIENVENIDA10").count() == 1

    def test_keeps_existing_default(self):
        call_command("seed_data")
        OrderStatus.objects.get(code="CONFIRMED").mark_as_default()

        call_command("seed_data")

        assert OrderStatus.objects.get(is_default=True).code == "CONFIRMED"
