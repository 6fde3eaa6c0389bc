from battlebeats.extensions.extension import db
from datetime import datetime


class Session(db.Model):
    """Server-side login session. The token cookie only carries `sid`."""
    __tablename__ = 'sessions'

    sid = db.Column(db.String(64), primary_key=True)
    sess = db.Column(db.JSON, nullable=False)
    expire = db.Column(db.DateTime, nullable=False, index=True)

    def is_valid(self, now=None):
        return (now or datetime.utcnow()) < self.expire
