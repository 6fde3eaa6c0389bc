from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import enum
import uuid


class Rating(enum.Enum):
    all_ages = "All Ages"
    teen = "13+"
    adult = "18+"


class ContentRating(db.Model):
    __tablename__ = 'content_ratings'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    battle_id = db.Column(Uuid, db.ForeignKey('battles.id'), nullable=True)
    track_id = db.Column(Uuid, db.ForeignKey('tracks.id'), nullable=False, unique=True)
    rating = db.Column(db.Enum(Rating), nullable=False, default=Rating.all_ages)
    # User ids of everyone who flagged the track
    flagged_by = db.Column(db.JSON, nullable=False, default=list)
    confirmed_by_admin = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    track = db.relationship('Track', backref=db.backref('content_rating', uselist=False))

    def to_dict(self):
        return {
            'id': str(self.id),
            'battle_id': str(self.battle_id) if self.battle_id else None,
            'track_id': str(self.track_id),
            'rating': self.rating.value if self.rating else None,
            'flagged_by': list(self.flagged_by or []),
            'confirmed_by_admin': bool(self.confirmed_by_admin),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
