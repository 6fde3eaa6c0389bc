from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import enum
import uuid


class PaymentStatus(enum.Enum):
    pending = 'pending'
    completed = 'completed'
    failed = 'failed'


class Payment(db.Model):
    __tablename__ = 'payments'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = db.Column(Uuid, db.ForeignKey('users.id'), nullable=False)
    payment_intent_id = db.Column(db.String(255), nullable=False, unique=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False, default='usd')
    status = db.Column(db.Enum(PaymentStatus), nullable=False, default=PaymentStatus.pending)
    error_message = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', backref=db.backref('payments', lazy=True))
