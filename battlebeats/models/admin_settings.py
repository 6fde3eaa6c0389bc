from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import enum
import uuid


class PayoutSchedule(enum.Enum):
    daily = "daily"
    weekly = "weekly"
    monthly = "monthly"


class AdminSettings(db.Model):
    __tablename__ = 'admin_settings'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    admin_id = db.Column(Uuid, db.ForeignKey('users.id'), nullable=False, unique=True)
    stripe_account_id = db.Column(db.String(255))
    payout_schedule = db.Column(db.Enum(PayoutSchedule), nullable=False, default=PayoutSchedule.monthly)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    admin = db.relationship('User', backref=db.backref('admin_settings', uselist=False))

    def to_dict(self):
        return {
            'id': str(self.id),
            'admin_id': str(self.admin_id),
            'stripe_account_id': self.stripe_account_id,
            'payout_schedule': self.payout_schedule.value if self.payout_schedule else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
