from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import uuid


class Track(db.Model):
    __tablename__ = 'tracks'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = db.Column(db.String(255), nullable=False)
    artist_id = db.Column(Uuid, db.ForeignKey('users.id'), nullable=True, index=True)
    battle_id = db.Column(Uuid, db.ForeignKey('battles.id'), nullable=True, index=True)
    audio_url = db.Column(db.String)
    bandlab_url = db.Column(db.String)
    duration = db.Column(db.Integer)  # seconds
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    artist = db.relationship('User', backref=db.backref('tracks', lazy='dynamic'))
    votes = db.relationship('Vote', backref='track', lazy='dynamic')

    def to_dict(self):
        return {
            'id': str(self.id),
            'title': self.title,
            'artist_id': str(self.artist_id) if self.artist_id else None,
            'battle_id': str(self.battle_id) if self.battle_id else None,
            'audio_url': self.audio_url,
            'bandlab_url': self.bandlab_url,
            'duration': self.duration,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
