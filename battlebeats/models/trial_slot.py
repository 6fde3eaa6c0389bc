from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import uuid


class TrialSlot(db.Model):
    __tablename__ = 'trial_slots'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    genre_id = db.Column(Uuid, db.ForeignKey('genres.id'), nullable=False, index=True)
    user_id = db.Column(Uuid, db.ForeignKey('users.id'), nullable=False, index=True)
    granted_at = db.Column(db.DateTime, default=datetime.utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)

    user = db.relationship('User', backref=db.backref('trial_slots', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': str(self.id),
            'genre_id': str(self.genre_id),
            'user_id': str(self.user_id),
            'granted_at': self.granted_at.isoformat() if self.granted_at else None,
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
        }
