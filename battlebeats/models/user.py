from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import enum
import uuid


class UserRole(enum.Enum):
    listener = "listener"
    participant = "participant"
    admin = "admin"


class SubscriptionStatus(enum.Enum):
    active = "active"
    inactive = "inactive"
    trial = "trial"
    canceled = "canceled"


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = db.Column(db.String(255), unique=True, nullable=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    profile_image_url = db.Column(db.String, nullable=True)
    username = db.Column(db.String(100), unique=True, nullable=True)
    google_id = db.Column(db.String(64), unique=True, nullable=True)
    role = db.Column(db.Enum(UserRole), nullable=False, default=UserRole.listener)
    stripe_customer_id = db.Column(db.String(255), nullable=True, index=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True)
    subscription_status = db.Column(
        db.Enum(SubscriptionStatus), nullable=False, default=SubscriptionStatus.inactive
    )
    trial_expires_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<User {self.username or self.email}>'

    @property
    def display_name(self):
        if self.username:
            return self.username
        full_name = ' '.join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.email

    def to_dict(self):
        return {
            'id': str(self.id),
            'email': self.email,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'profile_image_url': self.profile_image_url,
            'username': self.username,
            'role': self.role.value if self.role else None,
            'subscription_status': self.subscription_status.value if self.subscription_status else None,
            'trial_expires_at': self.trial_expires_at.isoformat() if self.trial_expires_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def to_public_dict(self):
        """Fields safe to show on leaderboards"""
        return {
            'id': str(self.id),
            'username': self.username,
            'display_name': self.display_name,
            'profile_image_url': self.profile_image_url,
            'role': self.role.value if self.role else None,
        }
