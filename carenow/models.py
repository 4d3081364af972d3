import uuid
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from .database import Base


def generate_id():
    return str(uuid.uuid4())


class User(Base):
    """Client or partner account profile, keyed by Firebase UID"""

    __tablename__ = "users"

    uid = Column(String(128), primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=True)
    avatar = Column(String(500), nullable=True)  # Public R2 URL
    role = Column(String(20), default="client", nullable=False)  # client, partner
    gender = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    bio = Column(Text, nullable=True)
    preferences = Column(JSON, default=list, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    is_phone_verified = Column(Boolean, default=False, nullable=False)
    fcm_token = Column(String(500), nullable=True)
    topics = Column(JSON, default=list, nullable=False)  # Subscribed FCM topics
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Partner(Base):
    __tablename__ = "partners"

    uid = Column(String(128), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False)
    gender = Column(String(20), nullable=True)
    services = Column(JSON, default=list, nullable=False)  # Service IDs
    # {"monday": ["08:00-12:00", "13:00-17:00"], ...}
    working_hours = Column(JSON, default=dict, nullable=False)
    rating = Column(Float, default=0.0, nullable=False)
    total_reviews = Column(Integer, default=0, nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    address = Column(Text, nullable=True)
    city = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    certifications = Column(JSON, default=list, nullable=False)
    experience_years = Column(Integer, default=0, nullable=False)
    price_per_hour = Column(Float, default=0.0, nullable=False)
    is_available = Column(Boolean, default=True, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_online = Column(Boolean, default=False, nullable=False)
    last_seen = Column(DateTime, nullable=True)
    unavailability_reason = Column(Text, nullable=True)
    unavailable_until = Column(DateTime, nullable=True)
    blocked_dates = Column(JSON, default=list, nullable=False)  # ISO dates
    fcm_token = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class PartnerOnboarding(Base):
    __tablename__ = "partner_onboarding"

    uid = Column(String(128), primary_key=True, index=True)
    current_step = Column(Integer, default=1, nullable=False)
    completed_steps = Column(JSON, default=dict, nullable=False)  # {"1": true, ...}
    partial_profile = Column(JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Service(Base):
    """Catalog entry for a bookable care service"""

    __tablename__ = "services"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    category = Column(String(50), index=True, nullable=False)
    icon_url = Column(String(500), nullable=True)
    base_price = Column(Float, nullable=False)  # Per hour, VND
    duration_minutes = Column(Integer, default=60, nullable=False)
    requirements = Column(JSON, default=list, nullable=False)
    benefits = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    sort_order = Column(Integer, default=0, nullable=False)
    booking_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = relationship("Booking", back_populates="service")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=generate_id, index=True)
    user_id = Column(String(128), index=True, nullable=False)
    partner_id = Column(String(128), index=True, default="", nullable=False)  # "" until assigned
    service_id = Column(String(64), ForeignKey("services.id"), index=True, nullable=False)
    service_name = Column(String(255), nullable=False)
    scheduled_date = Column(Date, index=True, nullable=False)
    time_slot = Column(String(5), nullable=False)  # HH:MM
    hours = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)
    is_urgent = Column(Boolean, default=False, nullable=False)
    # pending, confirmed, in_progress, completed, cancelled, rejected
    status = Column(String(20), default="pending", index=True, nullable=False)
    # unpaid, paid, refunded, failed
    payment_status = Column(String(20), default="unpaid", nullable=False)
    payment_method = Column(String(20), nullable=True)
    payment_transaction_id = Column(String(100), nullable=True)
    client_address = Column(Text, nullable=False)
    client_latitude = Column(Float, nullable=True)
    client_longitude = Column(Float, nullable=True)
    special_instructions = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    confirmed_at = Column(DateTime, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)
    reminder_sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    service = relationship("Service", back_populates="bookings")
    review = relationship("Review", back_populates="booking", uselist=False)


class Payment(Base):
    """One payment attempt against a booking"""

    __tablename__ = "payments"

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), index=True, nullable=False)
    user_id = Column(String(128), index=True, nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String(3), default="VND", nullable=False)
    method = Column(String(20), nullable=False)  # mock, stripe, momo, vnpay, cash
    status = Column(String(20), nullable=False)
    transaction_id = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    error_message = Column(Text, nullable=True)
    error_code = Column(String(50), nullable=True)
    details = Column("metadata", JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True, default=generate_id)
    booking_id = Column(String(36), ForeignKey("bookings.id"), unique=True, nullable=False)
    user_id = Column(String(128), index=True, nullable=False)
    partner_id = Column(String(128), index=True, nullable=False)
    service_id = Column(String(64), nullable=False)
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=True)
    tags = Column(JSON, default=list, nullable=False)
    is_recommended = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    booking = relationship("Booking", back_populates="review")


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(128), index=True, nullable=False)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    type = Column(String(50), nullable=False)
    data = Column(JSON, default=dict, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)
    priority = Column(Integer, default=2, nullable=False)  # 1=low .. 4=urgent
    category = Column(String(20), default="system", nullable=False)
    image_url = Column(String(500), nullable=True)
    action_url = Column(String(500), nullable=True)
    scheduled_at = Column(DateTime, nullable=True)
    is_scheduled = Column(Boolean, default=False, nullable=False)
    is_persistent = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    user_id = Column(String(128), primary_key=True)
    push_enabled = Column(Boolean, default=True, nullable=False)
    email_enabled = Column(Boolean, default=True, nullable=False)
    sms_enabled = Column(Boolean, default=False, nullable=False)
    category_preferences = Column(JSON, default=dict, nullable=False)
    priority_preferences = Column(JSON, default=dict, nullable=False)
    sound_enabled = Column(Boolean, default=True, nullable=False)
    vibration_enabled = Column(Boolean, default=True, nullable=False)
    show_on_lock_screen = Column(Boolean, default=True, nullable=False)
    show_preview = Column(Boolean, default=True, nullable=False)
    quiet_hours_start = Column(String(5), nullable=True)
    quiet_hours_end = Column(String(5), nullable=True)
    quiet_hours_enabled = Column(Boolean, default=False, nullable=False)
    muted_types = Column(JSON, default=list, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AdminUser(Base):
    __tablename__ = "admin_users"

    uid = Column(String(128), primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    display_name = Column(String(255), nullable=False)
    role = Column(String(20), default="admin", nullable=False)  # super_admin, admin, viewer
    permissions = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class AdminActivityLog(Base):
    __tablename__ = "admin_activity_logs"

    id = Column(String(36), primary_key=True, default=generate_id)
    admin_id = Column(String(128), index=True, nullable=False)
    activity_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    details = Column("metadata", JSON, default=dict, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
