"""Payment and review repositories"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...models import Payment as PaymentModel
from ...models import Review as ReviewModel
from ...shared.failures import ValidationFailure
from ...shared.repository import SqlAlchemyRepository
from .entities import (
    PaymentMethodType,
    PaymentRecord,
    PaymentRequest,
    PaymentResult,
    PaymentResultStatus,
    Review,
    ReviewRequest,
)

logger = logging.getLogger(__name__)


class PaymentRepository(ABC):
    @abstractmethod
    def record_payment(self, request: PaymentRequest, result: PaymentResult) -> PaymentRecord: ...

    @abstractmethod
    def get_booking_payments(self, booking_id: str) -> list[PaymentRecord]: ...

    @abstractmethod
    def get_payments_between(self, start: datetime, end: datetime) -> list[PaymentRecord]: ...


class ReviewRepository(ABC):
    @abstractmethod
    def create_review(self, request: ReviewRequest, partner_id: str, service_id: str) -> Review: ...

    @abstractmethod
    def get_booking_review(self, booking_id: str) -> Optional[Review]: ...

    @abstractmethod
    def get_partner_reviews(self, partner_id: str, limit: int) -> list[Review]: ...

    @abstractmethod
    def get_partner_rating(self, partner_id: str) -> tuple[float, int]: ...


def _payment_to_entity(row: PaymentModel) -> PaymentRecord:
    return PaymentRecord(
        id=row.id,
        booking_id=row.booking_id,
        user_id=row.user_id,
        amount=row.amount,
        currency=row.currency,
        method=PaymentMethodType(row.method),
        status=PaymentResultStatus(row.status),
        transaction_id=row.transaction_id,
        error_message=row.error_message,
        error_code=row.error_code,
        created_at=row.created_at,
    )


class SqlAlchemyPaymentRepository(SqlAlchemyRepository, PaymentRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def record_payment(self, request: PaymentRequest, result: PaymentResult) -> PaymentRecord:
        with self.guard("recording payment"):
            row = PaymentModel(
                booking_id=request.booking_id,
                user_id=request.user_id,
                amount=result.amount,
                currency=result.currency,
                method=request.payment_method.value,
                status=result.status.value,
                transaction_id=result.transaction_id,
                description=request.description,
                error_message=result.error_message,
                error_code=result.error_code,
                details=dict(request.metadata),
            )
            self.db.add(row)
            self.commit(row)
        return _payment_to_entity(row)

    def get_booking_payments(self, booking_id: str) -> list[PaymentRecord]:
        with self.guard("loading payments"):
            rows = (
                self.db.query(PaymentModel)
                .filter(PaymentModel.booking_id == booking_id)
                .order_by(PaymentModel.created_at.asc())
                .all()
            )
        return [_payment_to_entity(r) for r in rows]

    def get_payments_between(self, start: datetime, end: datetime) -> list[PaymentRecord]:
        with self.guard("loading payments for analytics"):
            rows = (
                self.db.query(PaymentModel)
                .filter(PaymentModel.created_at >= start, PaymentModel.created_at <= end)
                .all()
            )
        return [_payment_to_entity(r) for r in rows]


def _review_to_entity(row: ReviewModel) -> Review:
    return Review(
        id=row.id,
        booking_id=row.booking_id,
        user_id=row.user_id,
        partner_id=row.partner_id,
        service_id=row.service_id,
        rating=row.rating,
        comment=row.comment,
        tags=list(row.tags or []),
        is_recommended=row.is_recommended,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyReviewRepository(SqlAlchemyRepository, ReviewRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def create_review(self, request: ReviewRequest, partner_id: str, service_id: str) -> Review:
        row = ReviewModel(
            booking_id=request.booking_id,
            user_id=request.user_id,
            partner_id=partner_id,
            service_id=service_id,
            rating=request.rating,
            comment=request.comment,
            tags=list(request.tags),
            is_recommended=request.is_recommended,
        )
        with self.guard("creating review"):
            try:
                self.db.add(row)
                self.commit(row)
            except IntegrityError as e:
                # booking_id is unique
                self.db.rollback()
                raise ValidationFailure("This booking has already been reviewed") from e
        return _review_to_entity(row)

    def get_booking_review(self, booking_id: str) -> Optional[Review]:
        with self.guard("loading review"):
            row = self.db.query(ReviewModel).filter(ReviewModel.booking_id == booking_id).first()
        return _review_to_entity(row) if row else None

    def get_partner_reviews(self, partner_id: str, limit: int) -> list[Review]:
        with self.guard("loading partner reviews"):
            rows = (
                self.db.query(ReviewModel)
                .filter(ReviewModel.partner_id == partner_id)
                .order_by(ReviewModel.created_at.desc())
                .limit(limit)
                .all()
            )
        return [_review_to_entity(r) for r in rows]

    def get_partner_rating(self, partner_id: str) -> tuple[float, int]:
        with self.guard("computing partner rating"):
            average, count = (
                self.db.query(func.avg(ReviewModel.rating), func.count(ReviewModel.id))
                .filter(ReviewModel.partner_id == partner_id)
                .one()
            )
        return round(float(average or 0), 2), int(count or 0)
