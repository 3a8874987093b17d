from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Phase(str, Enum):
    WAITING = 'waiting'
    PLAYING = 'playing'
    FINISHED = 'finished'


@dataclass
class Player:
    sid: str                               # connection handle
    name: str
    score: int = 0
    solved: bool = False                   # solved the current track
    is_host: bool = False
    joined_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            'sid': self.sid,
            'name': self.name,
            'score': self.score,
            'solved': self.solved,
            'is_host': self.is_host,
        }
