from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import enum
import uuid


class BattleStatus(enum.Enum):
    active = "active"
    ended = "ended"
    pending = "pending"


class Battle(db.Model):
    __tablename__ = 'battles'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    genre_id = db.Column(Uuid, db.ForeignKey('genres.id'), nullable=True, index=True)
    created_by_id = db.Column(Uuid, db.ForeignKey('users.id'), nullable=True)
    status = db.Column(db.Enum(BattleStatus), nullable=False, default=BattleStatus.active, index=True)
    ends_at = db.Column(db.DateTime, nullable=False)
    prize_pool = db.Column(db.Numeric(10, 2), default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    creator = db.relationship('User', backref=db.backref('battles', lazy='dynamic'))
    tracks = db.relationship('Track', backref='battle', lazy='dynamic')
    votes = db.relationship('Vote', backref='battle', lazy='dynamic')

    def to_dict(self):
        return {
            'id': str(self.id),
            'title': self.title,
            'description': self.description,
            'genre_id': str(self.genre_id) if self.genre_id else None,
            'created_by_id': str(self.created_by_id) if self.created_by_id else None,
            'status': self.status.value if self.status else None,
            'ends_at': self.ends_at.isoformat() if self.ends_at else None,
            'prize_pool': float(self.prize_pool) if self.prize_pool is not None else 0,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
