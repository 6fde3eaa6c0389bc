from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import enum
import uuid


class ReferralStatus(enum.Enum):
    pending = "pending"
    verified = "verified"
    completed = "completed"


class Referral(db.Model):
    __tablename__ = 'referrals'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    referrer_id = db.Column(Uuid, db.ForeignKey('users.id'), nullable=False, index=True)
    referred_user_id = db.Column(Uuid, db.ForeignKey('users.id'), nullable=True)
    social_post_url = db.Column(db.String)
    status = db.Column(db.Enum(ReferralStatus), nullable=False, default=ReferralStatus.pending)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    referrer = db.relationship(
        'User', foreign_keys=[referrer_id], backref=db.backref('referrals_given', lazy='dynamic')
    )
    referred_user = db.relationship(
        'User', foreign_keys=[referred_user_id], backref=db.backref('referrals_received', lazy='dynamic')
    )

    def to_dict(self):
        return {
            'id': str(self.id),
            'referrer_id': str(self.referrer_id),
            'referred_user_id': str(self.referred_user_id) if self.referred_user_id else None,
            'social_post_url': self.social_post_url,
            'status': self.status.value if self.status else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
