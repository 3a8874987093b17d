import threading

import pytest

from tunerace.catalog import StaticCatalog
from tunerace.errors import AlreadySolved
from tunerace.models import Phase
from tunerace.services.game.registry import ROOM_ID_ALPHABET, RoomRegistry, generate_room_id


def test_generate_room_id_shape():
    room_id = generate_room_id()
    assert len(room_id) == 6
    assert all(ch in ROOM_ID_ALPHABET for ch in room_id)


def test_create_and_get():
    registry = RoomRegistry(StaticCatalog())
    room_id, room = registry.create('host', 'Alice')
    assert registry.get(room_id) is room
    assert room.phase == Phase.WAITING
    assert len(room.playlist) == 5
    assert len(registry) == 1
    assert room_id in registry


def test_lookup_is_case_insensitive():
    registry = RoomRegistry(StaticCatalog())
    room_id, room = registry.create('host', 'Alice')
    assert registry.get(room_id.lower()) is room
    assert registry.get(f'  {room_id.lower()} ') is room
    assert registry.get('NOPE00') is None
    assert registry.get(None) is None


def test_collisions_are_retried():
    ids = iter(['AAAAAA', 'AAAAAA', 'aaaaaa', 'BBBBBB'])
    registry = RoomRegistry(StaticCatalog(), id_generator=lambda length: next(ids))
    first, _ = registry.create('h1', 'Alice')
    second, _ = registry.create('h2', 'Bob')
    assert first == 'AAAAAA'
    assert second == 'BBBBBB'
    assert sorted(registry.room_ids()) == ['AAAAAA', 'BBBBBB']


def test_exhausted_ids_raise():
    registry = RoomRegistry(StaticCatalog(), id_generator=lambda length: 'SAME01')
    registry.create('h1', 'Alice')
    with pytest.raises(RuntimeError):
        registry.create('h2', 'Bob')
    assert len(registry) == 1


def test_delete_if_empty_only_drops_empty_rooms():
    registry = RoomRegistry(StaticCatalog())
    room_id, room = registry.create('host', 'Alice')
    room.add_player('b', 'Bob')
    room.remove_player('host')
    assert registry.delete_if_empty(room_id) is False
    assert registry.get(room_id) is room

    room.remove_player('b')
    assert registry.delete_if_empty(room_id) is True
    assert registry.get(room_id) is None
    assert room.closed
    assert registry.delete_if_empty(room_id) is False


def test_rooms_get_independent_state():
    registry = RoomRegistry(StaticCatalog())
    _, first = registry.create('h1', 'Alice')
    _, second = registry.create('h2', 'Bob')
    first.submit_guess('h1', 'hey jude')
    first.advance_track()
    assert second.current_track_index == 0
    assert second.players['h2'].score == 0


def test_concurrent_guesses_award_points_once_each():
    registry = RoomRegistry(StaticCatalog())
    _, room = registry.create('host', 'Alice')
    sids = [f'p{i}' for i in range(10)]
    for sid in sids:
        room.add_player(sid, sid)
    barrier = threading.Barrier(len(sids))
    results = []

    def guess(sid):
        barrier.wait()
        for _ in range(5):
            try:
                results.append(room.submit_guess(sid, 'hey jude').correct)
            except AlreadySolved:
                results.append(None)

    threads = [threading.Thread(target=guess, args=(sid,)) for sid in sids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(True) == len(sids)
    assert all(room.players[sid].score == 100 for sid in sids)
