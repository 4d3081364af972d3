"""
Payment gateways. Only the mock gateway and cash on delivery are wired up;
Stripe, MoMo and VNPay are listed as disabled methods.
"""

import logging
import uuid
from datetime import datetime

from ..domain.clients.entities import (
    PaymentMethod,
    PaymentMethodType,
    PaymentRequest,
    PaymentResult,
    PaymentResultStatus,
)

logger = logging.getLogger(__name__)

AVAILABLE_METHODS = [
    PaymentMethod(PaymentMethodType.MOCK, PaymentMethodType.MOCK.display_name, True, "Test payments"),
    PaymentMethod(PaymentMethodType.CASH, PaymentMethodType.CASH.display_name, True, "Pay the partner in person"),
    PaymentMethod(PaymentMethodType.STRIPE, PaymentMethodType.STRIPE.display_name, False, "Coming soon"),
    PaymentMethod(PaymentMethodType.MOMO, PaymentMethodType.MOMO.display_name, False, "Coming soon"),
    PaymentMethod(PaymentMethodType.VNPAY, PaymentMethodType.VNPAY.display_name, False, "Coming soon"),
]


def enabled_methods() -> set[PaymentMethodType]:
    return {m.type for m in AVAILABLE_METHODS if m.is_enabled}


class MockPaymentGateway:
    """Approves every charge with a generated transaction id"""

    def charge(self, request: PaymentRequest) -> PaymentResult:
        transaction_id = f"mock_{uuid.uuid4().hex[:16]}"
        logger.info(f"💳 Mock charge {transaction_id} for booking {request.booking_id}")
        return PaymentResult(
            success=True,
            status=PaymentResultStatus.COMPLETED,
            amount=request.amount,
            currency=request.currency,
            transaction_id=transaction_id,
            timestamp=datetime.utcnow(),
        )

    def refund(self, transaction_id: str, amount: float, currency: str) -> PaymentResult:
        logger.info(f"↩️ Mock refund for {transaction_id}")
        return PaymentResult(
            success=True,
            status=PaymentResultStatus.REFUNDED,
            amount=amount,
            currency=currency,
            transaction_id=f"refund_{uuid.uuid4().hex[:16]}",
            timestamp=datetime.utcnow(),
        )


class CashPaymentGateway:
    """Cash is collected by the partner; nothing is charged up front"""

    def charge(self, request: PaymentRequest) -> PaymentResult:
        return PaymentResult(
            success=True,
            status=PaymentResultStatus.PENDING,
            amount=request.amount,
            currency=request.currency,
            transaction_id=f"cash_{uuid.uuid4().hex[:16]}",
            timestamp=datetime.utcnow(),
        )


def gateway_for(method: PaymentMethodType):
    return {
        PaymentMethodType.MOCK: MockPaymentGateway,
        PaymentMethodType.CASH: CashPaymentGateway,
    }[method]()
