"""Booking repository - contract and SQLAlchemy implementation"""

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking as BookingModel
from ...shared.failures import DataFailure
from ...shared.repository import SqlAlchemyRepository
from .entities import Booking, BookingStatus, NewBooking, PaymentStatus

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = [BookingStatus.CONFIRMED.value, BookingStatus.IN_PROGRESS.value]


class BookingRepository(ABC):
    @abstractmethod
    def create_booking(self, booking: NewBooking) -> Booking: ...

    @abstractmethod
    def get_booking(self, booking_id: str) -> Booking: ...

    @abstractmethod
    def get_user_bookings(
        self, user_id: str, status: Optional[BookingStatus], limit: int
    ) -> list[Booking]: ...

    @abstractmethod
    def get_partner_bookings(
        self, partner_id: str, status: Optional[BookingStatus], limit: int
    ) -> list[Booking]: ...

    @abstractmethod
    def get_bookings_by_date_range(
        self, uid: str, start: date, end: date, is_partner: bool
    ) -> list[Booking]: ...

    @abstractmethod
    def get_open_bookings(self, service_ids: list[str]) -> list[Booking]: ...

    @abstractmethod
    def get_active_partner_bookings(self, partner_id: str, day: date) -> list[Booking]: ...

    @abstractmethod
    def get_unreminded_bookings(self, start: date, end: date) -> list[Booking]: ...

    @abstractmethod
    def get_completed_partner_bookings(self, partner_id: str) -> list[Booking]: ...

    @abstractmethod
    def get_bookings_created_between(self, start: datetime, end: datetime) -> list[Booking]: ...

    @abstractmethod
    def update_booking(self, booking_id: str, **changes) -> Booking: ...

    @abstractmethod
    def count_bookings(self) -> int: ...


def _to_entity(row: BookingModel) -> Booking:
    return Booking(
        id=row.id,
        user_id=row.user_id,
        partner_id=row.partner_id or "",
        service_id=row.service_id,
        service_name=row.service_name,
        scheduled_date=row.scheduled_date,
        time_slot=row.time_slot,
        hours=row.hours,
        total_price=row.total_price,
        is_urgent=row.is_urgent,
        status=BookingStatus.from_string(row.status),
        payment_status=PaymentStatus.from_string(row.payment_status),
        payment_method=row.payment_method,
        payment_transaction_id=row.payment_transaction_id,
        client_address=row.client_address,
        client_latitude=row.client_latitude,
        client_longitude=row.client_longitude,
        special_instructions=row.special_instructions,
        cancellation_reason=row.cancellation_reason,
        rejection_reason=row.rejection_reason,
        confirmed_at=row.confirmed_at,
        started_at=row.started_at,
        completed_at=row.completed_at,
        cancelled_at=row.cancelled_at,
        reminder_sent_at=row.reminder_sent_at,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class SqlAlchemyBookingRepository(SqlAlchemyRepository, BookingRepository):
    def __init__(self, db: Session):
        super().__init__(db)

    def _get_row(self, booking_id: str) -> BookingModel:
        with self.guard("loading booking"):
            row = self.db.query(BookingModel).filter(BookingModel.id == booking_id).first()
        if not row:
            raise DataFailure(f"Booking not found: {booking_id}")
        return row

    def create_booking(self, booking: NewBooking) -> Booking:
        with self.guard("creating booking"):
            row = BookingModel(
                user_id=booking.user_id,
                partner_id=booking.partner_id,
                service_id=booking.service_id,
                service_name=booking.service_name,
                scheduled_date=booking.scheduled_date,
                time_slot=booking.time_slot,
                hours=booking.hours,
                total_price=booking.total_price,
                is_urgent=booking.is_urgent,
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.UNPAID.value,
                client_address=booking.client_address,
                client_latitude=booking.client_latitude,
                client_longitude=booking.client_longitude,
                special_instructions=booking.special_instructions,
            )
            self.db.add(row)
            self.commit(row)
        logger.info(f"✅ Booking {row.id} created for user {booking.user_id}")
        return _to_entity(row)

    def get_booking(self, booking_id: str) -> Booking:
        return _to_entity(self._get_row(booking_id))

    def _list(self, column, uid: str, status: Optional[BookingStatus], limit: int) -> list[Booking]:
        query = self.db.query(BookingModel).filter(column == uid)
        if status is not None:
            query = query.filter(BookingModel.status == status.value)
        with self.guard("listing bookings"):
            rows = query.order_by(BookingModel.created_at.desc()).limit(limit).all()
        return [_to_entity(r) for r in rows]

    def get_user_bookings(self, user_id: str, status: Optional[BookingStatus], limit: int) -> list[Booking]:
        return self._list(BookingModel.user_id, user_id, status, limit)

    def get_partner_bookings(
        self, partner_id: str, status: Optional[BookingStatus], limit: int
    ) -> list[Booking]:
        return self._list(BookingModel.partner_id, partner_id, status, limit)

    def get_bookings_by_date_range(
        self, uid: str, start: date, end: date, is_partner: bool
    ) -> list[Booking]:
        column = BookingModel.partner_id if is_partner else BookingModel.user_id
        with self.guard("listing bookings by date"):
            rows = (
                self.db.query(BookingModel)
                .filter(
                    column == uid,
                    BookingModel.scheduled_date >= start,
                    BookingModel.scheduled_date <= end,
                )
                .order_by(BookingModel.scheduled_date.asc(), BookingModel.time_slot.asc())
                .all()
            )
        return [_to_entity(r) for r in rows]

    def get_open_bookings(self, service_ids: list[str]) -> list[Booking]:
        """Pending bookings not yet assigned to any partner"""
        if not service_ids:
            return []
        with self.guard("listing open bookings"):
            rows = (
                self.db.query(BookingModel)
                .filter(
                    BookingModel.status == BookingStatus.PENDING.value,
                    BookingModel.partner_id == "",
                    BookingModel.service_id.in_(service_ids),
                )
                .order_by(BookingModel.created_at.desc())
                .all()
            )
        return [_to_entity(r) for r in rows]

    def get_active_partner_bookings(self, partner_id: str, day: date) -> list[Booking]:
        """Confirmed or in-progress bookings of the partner on ``day``"""
        with self.guard("loading partner schedule"):
            rows = (
                self.db.query(BookingModel)
                .filter(
                    BookingModel.partner_id == partner_id,
                    BookingModel.scheduled_date == day,
                    BookingModel.status.in_(ACTIVE_STATUSES),
                )
                .order_by(BookingModel.time_slot.asc())
                .all()
            )
        return [_to_entity(r) for r in rows]

    def get_unreminded_bookings(self, start: date, end: date) -> list[Booking]:
        with self.guard("loading bookings to remind"):
            rows = (
                self.db.query(BookingModel)
                .filter(
                    BookingModel.status == BookingStatus.CONFIRMED.value,
                    BookingModel.scheduled_date >= start,
                    BookingModel.scheduled_date <= end,
                    BookingModel.reminder_sent_at.is_(None),
                )
                .all()
            )
        return [_to_entity(r) for r in rows]

    def get_completed_partner_bookings(self, partner_id: str) -> list[Booking]:
        with self.guard("loading completed bookings"):
            rows = (
                self.db.query(BookingModel)
                .filter(
                    BookingModel.partner_id == partner_id,
                    BookingModel.status == BookingStatus.COMPLETED.value,
                )
                .order_by(BookingModel.completed_at.desc())
                .all()
            )
        return [_to_entity(r) for r in rows]

    def get_bookings_created_between(self, start: datetime, end: datetime) -> list[Booking]:
        with self.guard("loading bookings for analytics"):
            rows = (
                self.db.query(BookingModel)
                .filter(BookingModel.created_at >= start, BookingModel.created_at <= end)
                .order_by(BookingModel.created_at.asc())
                .all()
            )
        return [_to_entity(r) for r in rows]

    def update_booking(self, booking_id: str, **changes) -> Booking:
        row = self._get_row(booking_id)
        with self.guard("updating booking"):
            for key, value in changes.items():
                if isinstance(value, (BookingStatus, PaymentStatus)):
                    value = value.value
                setattr(row, key, value)
            row.updated_at = datetime.utcnow()
            self.commit(row)
        return _to_entity(row)

    def count_bookings(self) -> int:
        with self.guard("counting bookings"):
            return self.db.query(BookingModel).count()
