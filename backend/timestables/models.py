from datetime import datetime, timezone

from timestables import db

NAME_MAX_LENGTH = 64


def _utcnow():
    return datetime.now(timezone.utc)


class ScoreEntry(db.Model):
    __tablename__ = 'score_entry'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(NAME_MAX_LENGTH), nullable=False)
    score = db.Column(db.Integer, nullable=False, default=0)
    difficulty = db.Column(db.String(16), nullable=False, index=True)  # easy, hard
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'difficulty': self.difficulty,
            'timestamp': self.created_at.isoformat() if self.created_at else None,
        }
