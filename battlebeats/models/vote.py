from battlebeats.extensions.extension import db
from datetime import datetime
from sqlalchemy import Uuid
import uuid


class Vote(db.Model):
    __tablename__ = 'votes'

    id = db.Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = db.Column(Uuid, db.ForeignKey('users.id'), nullable=False)
    track_id = db.Column(Uuid, db.ForeignKey('tracks.id'), nullable=False, index=True)
    battle_id = db.Column(Uuid, db.ForeignKey('battles.id'), nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # One vote per user per battle
    __table_args__ = (
        db.UniqueConstraint('user_id', 'battle_id', name='uq_user_battle_vote'),
    )

    user = db.relationship('User', backref=db.backref('votes', lazy='dynamic'))

    def to_dict(self):
        return {
            'id': str(self.id),
            'user_id': str(self.user_id),
            'track_id': str(self.track_id),
            'battle_id': str(self.battle_id),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
