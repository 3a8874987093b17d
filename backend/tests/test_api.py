from conftest import NAMESPACE


def test_health(client):
    res = client.get('/')
    assert res.status_code == 200
    data = res.get_json()
    assert data['status'] == 'running'
    assert data['rooms'] == 0
    assert 'timestamp' in data


def test_room_state_not_found(client):
    res = client.get('/api/rooms/NOPE00/state')
    assert res.status_code == 404
    assert res.get_json()['error'] == 'Room not found'


def test_room_state_hides_answer(client, registry):
    room_id, room = registry.create('host-sid', 'Alice')
    room.start_game('host-sid')

    res = client.get(f'/api/rooms/{room_id.lower()}/state')
    assert res.status_code == 200
    state = res.get_json()
    assert state['room_id'] == room_id
    assert state['phase'] == 'playing'
    assert state['current_track'] == {'artist': 'The Beatles'}
    assert 'hey jude' not in res.get_data(as_text=True).lower()
    assert client.get('/').get_json()['rooms'] == 1


def test_registry_shared_with_socket_gateway(flask_app, registry, connect):
    alice = connect()
    alice.emit('create_room', {'player_name': 'Alice'}, namespace=NAMESPACE)
    assert len(registry) == 1
    assert flask_app.extensions['session_gateway'].registry is registry
