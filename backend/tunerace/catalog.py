from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, Tuple

from tunerace.services.game.scoring import normalize_guess


# Placeholder content until a real catalog service is wired in
PLACEHOLDER_PLAYLIST = [
    {'artist': 'The Beatles', 'title': 'Hey Jude', 'answer': 'hey jude'},
    {'artist': 'Queen', 'title': 'Bohemian Rhapsody', 'answer': 'bohemian rhapsody'},
    {'artist': 'Led Zeppelin', 'title': 'Stairway to Heaven', 'answer': 'stairway to heaven'},
    {'artist': 'Pink Floyd', 'title': 'Wish You Were Here', 'answer': 'wish you were here'},
    {'artist': 'The Rolling Stones', 'title': 'Paint It Black', 'answer': 'paint it black'},
]


@dataclass(frozen=True)
class Track:
    index: int
    artist: str
    title: str
    answer: str

    def public_view(self):
        # Title and answer stay hidden while the track is live
        return {'artist': self.artist}

    def to_dict(self):
        return {
            'index': self.index,
            'artist': self.artist,
            'title': self.title,
        }


class TrackCatalog(Protocol):
    """Source of the ordered tracks a room plays through."""

    def get_playlist(self) -> Sequence[Track]:
        ...


class StaticCatalog:
    def __init__(self, entries=None):
        if entries is None:
            entries = PLACEHOLDER_PLAYLIST
        self._tracks: Tuple[Track, ...] = tuple(
            Track(
                index=i,
                artist=entry['artist'],
                title=entry['title'],
                answer=normalize_guess(entry.get('answer') or entry['title']),
            )
            for i, entry in enumerate(entries)
        )

    def get_playlist(self) -> Tuple[Track, ...]:
        return self._tracks

    def __len__(self):
        return len(self._tracks)
