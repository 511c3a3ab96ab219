from conftest import auth

STROKE = {'color': 'red', 'size': 4, 'points': [{'x': 0, 'y': 0}, {'x': 10, 'y': 10}]}


def events(sio_client, name):
    return [pkt['args'][0] for pkt in sio_client.get_received('/ws') if pkt['name'] == name]


def test_socket_connect_and_join(make_sio_client, seeded):
    sio_client = make_sio_client('uid-gm')
    assert sio_client.is_connected('/ws')

    sio_client.emit('join_map', {'game_id': seeded['g1']}, namespace='/ws')
    assert events(sio_client, 'joined') == [{'game_id': seeded['g1']}]


def test_ping_pong(make_sio_client, seeded):
    sio_client = make_sio_client('uid-gm')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert events(sio_client, 'pong') == [{'n': 1}]


def test_live_edit_echoes_to_everyone_and_is_not_persisted(client, make_sio_client, seeded):
    g1 = seeded['g1']
    client.post(f'/api/maps/{g1}/snapshot', json={'mapData': {'drawnElements': [STROKE]}}, headers=auth('uid-gm'))

    gm = make_sio_client('uid-gm')
    player = make_sio_client('uid-player')
    for c in (gm, player):
        c.emit('join_map', {'game_id': g1}, namespace='/ws')
        c.get_received('/ws')

    edit = {'type': 'strokeInProgress', 'points': [{'x': 1, 'y': 2}, {'x': 3, 'y': 4}]}
    player.emit('live_edit', edit, namespace='/ws')

    assert events(gm, 'map_updated') == [edit]
    assert events(player, 'map_updated') == [edit]

    view = client.get(f'/api/maps/{g1}', headers=auth('uid-gm')).get_json()
    assert view['drawnElements'] == [STROKE]


def test_live_edits_stay_inside_their_game(make_sio_client, seeded):
    in_g1 = make_sio_client('uid-gm')
    in_g2 = make_sio_client('uid-other')
    in_g1.emit('join_map', {'game_id': seeded['g1']}, namespace='/ws')
    in_g2.emit('join_map', {'game_id': seeded['g2']}, namespace='/ws')
    in_g1.get_received('/ws')
    in_g2.get_received('/ws')

    in_g2.emit('live_edit', {'type': 'tokenDrag', 'id': 7}, namespace='/ws')
    assert events(in_g1, 'map_updated') == []


def test_live_edits_arrive_in_order(make_sio_client, seeded):
    gm = make_sio_client('uid-gm')
    gm.emit('join_map', {'game_id': seeded['g1']}, namespace='/ws')
    gm.get_received('/ws')
    for i in range(5):
        gm.emit('live_edit', {'seq': i}, namespace='/ws')
    assert [e['seq'] for e in events(gm, 'map_updated')] == [0, 1, 2, 3, 4]


def test_live_edit_before_join_is_an_error(make_sio_client, seeded):
    gm = make_sio_client('uid-gm')
    gm.emit('live_edit', {'type': 'strokeInProgress'}, namespace='/ws')
    errors = events(gm, 'error')
    assert errors and errors[0]['kind'] == 'validation'


def test_join_requires_accepted_participant(make_sio_client, seeded):
    pending = make_sio_client('uid-pending')
    pending.emit('join_map', {'game_id': seeded['g1']}, namespace='/ws')
    errors = events(pending, 'error')
    assert errors and errors[0]['kind'] == 'unauthorized'

    pending.emit('join_map', {}, namespace='/ws')
    assert events(pending, 'error')[0]['kind'] == 'validation'


def test_rejoin_moves_connection_to_new_game(flask_app, seeded):
    from tabletop import socketio, db
    from tabletop.models import GameParticipant, ROLE_PLAYER

    with flask_app.app_context():
        db.session.add(GameParticipant(game_id=seeded['g2'], user_id=seeded['users']['gm'],
                                       role=ROLE_PLAYER, is_accepted=True))
        db.session.commit()

    broadcaster = flask_app.extensions['map_coordinator'].broadcaster
    gm = socketio.test_client(flask_app, namespace='/ws', headers=auth('uid-gm'))
    gm.emit('join_map', {'game_id': seeded['g1']}, namespace='/ws')
    gm.emit('join_map', {'game_id': seeded['g2']}, namespace='/ws')
    assert broadcaster.members(seeded['g1']) == []
    assert len(broadcaster.members(seeded['g2'])) == 1
    gm.disconnect(namespace='/ws')


def test_leave_and_disconnect_drop_membership(flask_app, make_sio_client, seeded):
    broadcaster = flask_app.extensions['map_coordinator'].broadcaster
    gm = make_sio_client('uid-gm')
    player = make_sio_client('uid-player')
    gm.emit('join_map', {'game_id': seeded['g1']}, namespace='/ws')
    player.emit('join_map', {'game_id': seeded['g1']}, namespace='/ws')
    assert len(broadcaster.members(seeded['g1'])) == 2

    player.emit('leave_map', {}, namespace='/ws')
    assert events(player, 'left') == [{'game_id': seeded['g1']}]
    assert len(broadcaster.members(seeded['g1'])) == 1

    gm.disconnect(namespace='/ws')
    assert broadcaster.members(seeded['g1']) == []


def test_join_reports_storage_failure(make_sio_client, seeded, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from tabletop import db

    def broken_get(*args, **kwargs):
        raise OperationalError('SELECT game', {}, Exception('db down'))

    gm = make_sio_client('uid-gm')
    monkeypatch.setattr(db.session, 'get', broken_get)
    gm.emit('join_map', {'game_id': seeded['g1']}, namespace='/ws')
    received = gm.get_received('/ws')
    assert [pkt['name'] for pkt in received] == ['error']
    assert received[0]['args'][0] == {'message': 'Game storage unavailable', 'kind': 'upstream'}
