"""
Nexo Greencycle SQLAlchemy Models
All database entities for the waste pickup, chat, agreement and loyalty flows.
"""

import uuid
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import (
    Column, String, Boolean, Integer, Text, Date, DateTime, ForeignKey, JSON,
    CheckConstraint, Index, UniqueConstraint, case, func
)
from sqlalchemy.orm import relationship, validates
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()

USER_TYPES = ("producer", "recycling", "incineration", "waste_management")
COMPANY_USER_TYPES = ("recycling", "incineration", "waste_management")

PICKUP_STATUSES = ("pending", "accepted", "in_progress", "completed", "cancelled")
TERMINAL_PICKUP_STATUSES = ("completed", "cancelled")
PREFERRED_TIMES = ("morning", "afternoon", "evening")

MESSAGE_TYPES = ("text", "system", "agreement_pdf")
SIGNER_ROLES = ("user", "company")

POINTS_TRANSACTION_TYPES = ("earned", "bonus", "redeemed")
REDEMPTION_STATUSES = ("active", "used", "expired")

SYSTEM_SENDER_NAME = "System"


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------
class User(db.Model):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    location = Column(String(255), nullable=True)
    user_type = Column(String(30), nullable=False, default="producer")
    # Catalog id of the partner company a company account speaks for
    company_id = Column(Integer, nullable=True, index=True)
    license_number = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="active")

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint(
            "user_type IN ('producer', 'recycling', 'incineration', 'waste_management')",
            name="ck_user_type",
        ),
        CheckConstraint("status IN ('active', 'deactivated')", name="ck_user_status"),
    )

    sessions = relationship("UserSession", back_populates="user", lazy="dynamic", cascade="all, delete-orphan")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def display_name(self):
        return self.full_name or self.email or "User"

    @property
    def is_company_account(self):
        return self.user_type in COMPANY_USER_TYPES and self.company_id is not None

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "phone": self.phone,
            "location": self.location,
            "user_type": self.user_type,
            "company_id": self.company_id,
            "license_number": self.license_number,
            "status": self.status,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


# ---------------------------------------------------------------------------
# UserSession (one row per issued token; revoked on logout)
# ---------------------------------------------------------------------------
class UserSession(db.Model):
    __tablename__ = "user_sessions"

    id = Column(String(36), primary_key=True, default=generate_uuid)  # JWT jti
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    user_agent = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    revoked_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="sessions")

    @property
    def is_active(self):
        return self.revoked_at is None


# ---------------------------------------------------------------------------
# PickupRequest
# ---------------------------------------------------------------------------
class PickupRequest(db.Model):
    __tablename__ = "pickup_requests"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Copied from the static company catalog; there is no companies table
    company_id = Column(Integer, nullable=False, index=True)
    company_name = Column(String(255), nullable=False)

    waste_type = Column(String(50), nullable=False, default="general")
    waste_description = Column(String(500), nullable=True)
    location = Column(String(255), nullable=False)
    preferred_date = Column(Date, nullable=False)
    preferred_time = Column(String(20), nullable=False, default="morning")
    status = Column(String(20), nullable=False, default="pending")

    agreement_signed_user = Column(Boolean, nullable=False, default=False)
    agreement_signed_company = Column(Boolean, nullable=False, default=False)

    reminder_sent_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", backref="pickup_requests")
    signatures = relationship("AgreementSignature", back_populates="pickup_request", lazy="dynamic",
                              cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'in_progress', 'completed', 'cancelled')",
            name="ck_pickup_status",
        ),
        CheckConstraint(
            "preferred_time IN ('morning', 'afternoon', 'evening')",
            name="ck_pickup_preferred_time",
        ),
        Index("ix_pickup_requests_status", "status"),
    )

    def participant_role(self, user):
        """'user' for the requester, 'company' for accounts of the addressed
        company, None for everybody else."""
        if user is None:
            return None
        if user.id == self.user_id:
            return "user"
        if user.is_company_account and user.company_id == self.company_id:
            return "company"
        return None

    def signature_for(self, signer_role):
        return self.signatures.filter_by(signer_role=signer_role).first()

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "company_id": self.company_id,
            "company_name": self.company_name,
            "waste_type": self.waste_type,
            "waste_description": self.waste_description,
            "location": self.location,
            "preferred_date": _iso(self.preferred_date),
            "preferred_time": self.preferred_time,
            "status": self.status,
            "agreement_signed_user": bool(self.agreement_signed_user),
            "agreement_signed_company": bool(self.agreement_signed_company),
            "reminder_sent_at": _iso(self.reminder_sent_at),
            "completed_at": _iso(self.completed_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


# ---------------------------------------------------------------------------
# ChatMessage (per-pickup thread; text, system and agreement_pdf variants)
# ---------------------------------------------------------------------------
class ChatMessage(db.Model):
    __tablename__ = "chat_messages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    pickup_request_id = Column(String(36), ForeignKey("pickup_requests.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    sender_id = Column(String(36), nullable=False)  # user_id
    sender_name = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    message_type = Column(String(20), nullable=False, default="text")
    attachment_url = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    message_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    pickup_request = relationship("PickupRequest", backref="chat_messages")

    __table_args__ = (
        CheckConstraint(
            "message_type IN ('text', 'system', 'agreement_pdf')",
            name="ck_chat_message_type",
        ),
        Index("ix_chat_messages_pickup_created", "pickup_request_id", "created_at"),
    )

    @validates("message_type")
    def _validate_message_type(self, key, value):
        if value not in MESSAGE_TYPES:
            raise ValueError("Unknown chat message type: {}".format(value))
        return value

    @classmethod
    def text_message(cls, pickup_request_id, sender_id, sender_name, message):
        return cls(
            pickup_request_id=pickup_request_id,
            sender_id=sender_id,
            sender_name=sender_name,
            message=message,
            message_type="text",
        )

    @classmethod
    def system_message(cls, pickup_request_id, sender_id, message):
        return cls(
            pickup_request_id=pickup_request_id,
            sender_id=sender_id,
            sender_name=SYSTEM_SENDER_NAME,
            message=message,
            message_type="system",
        )

    @classmethod
    def agreement_message(cls, pickup_request_id, sender_id, sender_name, message, attachment_url,
                          requires_signature=True):
        if not attachment_url:
            raise ValueError("agreement_pdf messages need an attachment")
        return cls(
            pickup_request_id=pickup_request_id,
            sender_id=sender_id,
            sender_name=sender_name,
            message=message,
            message_type="agreement_pdf",
            attachment_url=attachment_url,
            message_metadata={"requiresSignature": bool(requires_signature)},
        )

    @property
    def requires_signature(self):
        if self.message_type != "agreement_pdf":
            return False
        return bool((self.message_metadata or {}).get("requiresSignature"))

    def to_dict(self):
        is_agreement = self.message_type == "agreement_pdf"
        return {
            "id": self.id,
            "pickup_request_id": self.pickup_request_id,
            "sender_id": self.sender_id,
            "sender_name": self.sender_name,
            "message": self.message,
            "message_type": self.message_type,
            "attachment_url": self.attachment_url if is_agreement else None,
            "metadata": {"requiresSignature": self.requires_signature} if is_agreement else None,
            "created_at": _iso(self.created_at),
        }


# ---------------------------------------------------------------------------
# AgreementSignature (typed-name signature, one per role per pickup)
# ---------------------------------------------------------------------------
class AgreementSignature(db.Model):
    __tablename__ = "agreement_signatures"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    pickup_request_id = Column(String(36), ForeignKey("pickup_requests.id", ondelete="CASCADE"),
                               nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    signature_data = Column(String(255), nullable=False)  # typed full name
    signer_role = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    pickup_request = relationship("PickupRequest", back_populates="signatures")

    __table_args__ = (
        CheckConstraint("signer_role IN ('user', 'company')", name="ck_signature_signer_role"),
        UniqueConstraint("pickup_request_id", "signer_role", name="uq_signature_pickup_role"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "pickup_request_id": self.pickup_request_id,
            "user_id": self.user_id,
            "signature_data": self.signature_data,
            "signer_role": self.signer_role,
            "created_at": _iso(self.created_at),
        }


# ---------------------------------------------------------------------------
# PointsTransaction (append-only loyalty ledger)
# ---------------------------------------------------------------------------
class PointsTransaction(db.Model):
    __tablename__ = "points_transactions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    type = Column(String(20), nullable=False)
    description = Column(String(255), nullable=True)
    pickup_request_id = Column(String(36), ForeignKey("pickup_requests.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_points_amount_positive"),
        CheckConstraint("type IN ('earned', 'bonus', 'redeemed')", name="ck_points_type"),
        Index("ix_points_transactions_user_created", "user_id", "created_at"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": self.amount,
            "type": self.type,
            "description": self.description,
            "pickup_request_id": self.pickup_request_id,
            "created_at": _iso(self.created_at),
        }


# ---------------------------------------------------------------------------
# Redemption (id doubles as the redemption_id inside the QR payload)
# ---------------------------------------------------------------------------
class Redemption(db.Model):
    __tablename__ = "redemptions"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    points_used = Column(Integer, nullable=False)
    redemption_type = Column(String(30), nullable=False)
    qr_code = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="active")
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("points_used > 0", name="ck_redemption_points_positive"),
        CheckConstraint("status IN ('active', 'used', 'expired')", name="ck_redemption_status"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "points_used": self.points_used,
            "redemption_type": self.redemption_type,
            "qr_code": self.qr_code,
            "status": self.status,
            "created_at": _iso(self.created_at),
        }


# ---------------------------------------------------------------------------
# WasteAnalysis (stored AI classification results)
# ---------------------------------------------------------------------------
class WasteAnalysis(db.Model):
    __tablename__ = "waste_analyses"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    summary = Column(Text, nullable=True)
    items = Column(JSON, nullable=True, default=list)
    created_at = Column(DateTime, default=utcnow)

    @property
    def primary_item(self):
        items = self.items or []
        return items[0] if items else None

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "summary": self.summary,
            "items": self.items or [],
            "created_at": _iso(self.created_at),
        }


# ---------------------------------------------------------------------------
# ContactMessage (public contact form)
# ---------------------------------------------------------------------------
class ContactMessage(db.Model):
    __tablename__ = "contact_messages"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="open")

    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        CheckConstraint("status IN ('open', 'resolved')", name="ck_contact_message_status"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "message": self.message,
            "status": self.status,
            "created_at": _iso(self.created_at),
        }


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------
def get_user_points_balance(user_id):
    """Current balance: earned and bonus points minus redeemed points."""
    signed_amount = case(
        (PointsTransaction.type == "redeemed", -PointsTransaction.amount),
        else_=PointsTransaction.amount,
    )
    total = (
        db.session.query(func.coalesce(func.sum(signed_amount), 0))
        .filter(PointsTransaction.user_id == user_id)
        .scalar()
    )
    return int(total or 0)
