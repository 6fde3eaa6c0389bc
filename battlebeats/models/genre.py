from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import uuid

# Hard cap on the number of genres the platform carries
MAX_GENRES = 8

DEFAULT_GENRES = [
    "Electronic",
    "Lo-Fi",
    "Synthwave",
    "Hip-Hop",
    "Rock",
    "Pop",
    "Ambient",
    "Jazz",
]


class Genre(db.Model):
    __tablename__ = 'genres'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = db.Column(db.String(100), unique=True, nullable=False)
    # 1..MAX_GENRES; the unique slot number is what enforces the cap
    slot = db.Column(db.Integer, unique=True, nullable=False)
    max_trial_slots = db.Column(db.Integer, nullable=False, default=100)
    filled_trial_slots = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    __table_args__ = (
        db.CheckConstraint('filled_trial_slots >= 0', name='ck_genre_filled_slots_non_negative'),
        db.CheckConstraint('filled_trial_slots <= max_trial_slots', name='ck_genre_filled_slots_capacity'),
        db.CheckConstraint(f'slot >= 1 AND slot <= {MAX_GENRES}', name='ck_genre_slot_range'),
    )

    battles = db.relationship('Battle', backref='genre', lazy='dynamic')
    trial_slots = db.relationship('TrialSlot', backref='genre', lazy='dynamic')

    @property
    def available_trial_slots(self):
        return max(0, (self.max_trial_slots or 0) - (self.filled_trial_slots or 0))

    def to_dict(self):
        return {
            'id': str(self.id),
            'name': self.name,
            'max_trial_slots': self.max_trial_slots,
            'filled_trial_slots': self.filled_trial_slots,
            'available_trial_slots': self.available_trial_slots,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
