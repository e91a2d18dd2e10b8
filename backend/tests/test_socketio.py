def _events(sio_client, name=None):
    received = sio_client.get_received('/ws')
    return [pkt['args'][0] if pkt['args'] else None
            for pkt in received if name is None or pkt['name'] == name]


def _named(received, name):
    return [pkt['args'][0] for pkt in received if pkt['name'] == name]


def _open_room(make_sio_client):
    host = make_sio_client()
    host.emit('create-room', {'displayName': 'Alice', 'avatarRef': 'fox'}, namespace='/ws')
    created = _events(host, 'room-created')[0]
    guest = make_sio_client()
    guest.emit('join-room', {'code': created['code'], 'displayName': 'Bob', 'avatarRef': 'owl'},
               namespace='/ws')
    joined = _events(guest, 'player-joined')[0]
    host.get_received('/ws')
    return host, guest, created['code'], created['player']['id'], joined['player']['id']


def test_socket_connect_greets(flask_app):
    from guesswho import socketio
    sio_client = socketio.test_client(flask_app, namespace='/ws')
    assert sio_client.is_connected('/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'connected' for pkt in received)
    sio_client.disconnect(namespace='/ws')


def test_ping_pong(make_sio_client):
    sio_client = make_sio_client()
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    assert _events(sio_client, 'pong') == [{'n': 1}]


def test_create_join_and_start(make_sio_client):
    host = make_sio_client()
    host.emit('create-room', {'displayName': 'Alice', 'avatarRef': 'fox'}, namespace='/ws')
    created = _events(host, 'room-created')[0]
    code = created['code']
    assert len(code) == 6
    assert [p['displayName'] for p in created['players']] == ['Alice']

    guest = make_sio_client()
    guest.emit('join-room', {'code': code.lower(), 'displayName': 'Bob', 'avatarRef': 'owl'},
               namespace='/ws')
    for sio_client in (host, guest):
        joined = _events(sio_client, 'player-joined')[0]
        assert joined['code'] == code
        assert [p['displayName'] for p in joined['players']] == ['Alice', 'Bob']

    host.emit('start-game', {'code': code}, namespace='/ws')
    for sio_client in (host, guest):
        received = sio_client.get_received('/ws')
        started = _named(received, 'game-started')
        assert started and started[0]['code'] == code
        inits = [e for e in _named(received, 'game-event') if e['type'] == 'gameInit']
        assert len(inits) == 1


def test_each_player_only_learns_own_secret(flask_app, make_sio_client):
    host, guest, code, alice, bob = _open_room(make_sio_client)
    host.emit('start-game', {'code': code}, namespace='/ws')
    session = flask_app.extensions['guesswho'].registry.get(code).session
    host_init = [e for e in _events(host, 'game-event') if e['type'] == 'gameInit']
    guest_init = [e for e in _events(guest, 'game-event') if e['type'] == 'gameInit']
    assert host_init == [{'type': 'gameInit', 'code': code, 'player': alice,
                          'myCharacterId': session.secret_for(alice), 'firstTurn': session.turn_holder}]
    assert guest_init[0]['player'] == bob
    assert guest_init[0]['myCharacterId'] == session.secret_for(bob)


def test_join_missing_room_reports_only_to_joiner(make_sio_client):
    host = make_sio_client()
    host.emit('create-room', {'displayName': 'Alice'}, namespace='/ws')
    host.get_received('/ws')
    stranger = make_sio_client()
    stranger.emit('join-room', {'code': 'NOPE00', 'displayName': 'Zed'}, namespace='/ws')
    assert _events(stranger, 'room-error') == [{'kind': 'RoomNotFound', 'message': 'Room does not exist'}]
    assert host.get_received('/ws') == []


def test_third_player_gets_room_full(make_sio_client):
    host, guest, code, alice, bob = _open_room(make_sio_client)
    third = make_sio_client()
    third.emit('join-room', {'code': code, 'displayName': 'Cara'}, namespace='/ws')
    assert _events(third, 'room-error')[0]['kind'] == 'RoomFull'


def test_malformed_payload_is_rejected(make_sio_client):
    sio_client = make_sio_client()
    sio_client.emit('create-room', {'avatarRef': 'fox'}, namespace='/ws')
    errors = _events(sio_client, 'game-error')
    assert errors == [{'kind': 'InvalidMove', 'message': 'displayName is required'}]


def test_question_answer_guess_over_socket(flask_app, make_sio_client):
    host, guest, code, alice, bob = _open_room(make_sio_client)
    host.emit('start-game', {'code': code}, namespace='/ws')
    host.get_received('/ws')
    guest.get_received('/ws')
    session = flask_app.extensions['guesswho'].registry.get(code).session
    session.turn_holder = alice

    host.emit('game-event', {'type': 'question', 'feature': 'hasHat', 'value': True}, namespace='/ws')
    asked = _events(guest, 'game-event')
    assert asked[0]['type'] == 'question' and asked[0]['sender'] == alice
    assert session.turn_holder == alice

    guest.emit('game-event', {'type': 'answer', 'answer': True}, namespace='/ws')
    answered = _events(host, 'game-event')
    assert answered[-1]['type'] == 'answer'
    assert session.turn_holder == bob

    wrong = next(cid for cid in session.catalog.ids if cid != session.secret_for(alice))
    guest.emit('game-event', {'type': 'guess', 'characterId': wrong}, namespace='/ws')
    result = [e for e in _events(host, 'game-event') if e['type'] == 'guessResult'][0]
    assert result['correct'] is False and result['turnHolder'] == alice
    assert session.turn_holder == alice

    host.emit('game-event', {'type': 'guess', 'characterId': session.secret_for(bob)}, namespace='/ws')
    result = [e for e in _events(guest, 'game-event') if e['type'] == 'guessResult'][0]
    assert result['correct'] is True and result['winner'] == alice

    guest.get_received('/ws')
    guest.emit('game-event', {'type': 'question', 'feature': 'hasHat', 'value': True}, namespace='/ws')
    assert _events(guest, 'game-error')[0]['kind'] == 'InvalidMove'


def test_flip_is_visible_to_opponent(flask_app, make_sio_client):
    host, guest, code, alice, bob = _open_room(make_sio_client)
    host.emit('start-game', {'code': code}, namespace='/ws')
    guest.get_received('/ws')
    host.emit('game-event', {'type': 'flipCharacter', 'characterId': 2}, namespace='/ws')
    flipped = _events(guest, 'game-event')
    assert flipped == [{'type': 'flipCharacter', 'sender': alice, 'characterId': 2, 'code': code}]


def test_disconnect_mid_game_forfeits(flask_app, make_sio_client):
    host, guest, code, alice, bob = _open_room(make_sio_client)
    host.emit('start-game', {'code': code}, namespace='/ws')
    guest.get_received('/ws')
    host.disconnect(namespace='/ws')
    received = guest.get_received('/ws')
    ended = [e for e in _named(received, 'game-event') if e['type'] == 'gameEnded']
    assert ended == [{'type': 'gameEnded', 'reason': 'forfeit', 'winner': bob, 'code': code}]
    left = _named(received, 'player-left')[0]
    assert left['playerId'] == alice
    assert [p['id'] for p in left['players']] == [bob]


def test_room_chat_stays_in_room(make_sio_client):
    host, guest, code, alice, bob = _open_room(make_sio_client)
    outsider = make_sio_client()
    host.emit('chat', {'text': 'good luck', 'sender': 'Alice', 'timestamp': 10, 'code': code},
              namespace='/ws')
    assert _events(guest, 'chat') == [{'text': 'good luck', 'sender': 'Alice', 'timestamp': 10, 'code': code}]
    assert _events(outsider, 'chat') == []


def test_leave_room_event(flask_app, make_sio_client):
    host, guest, code, alice, bob = _open_room(make_sio_client)
    guest.emit('leave-room', namespace='/ws')
    assert _events(guest, 'left') == [{'code': code}]
    left = _events(host, 'player-left')[0]
    assert left['playerId'] == bob
    assert flask_app.extensions['guesswho'].room_view(code)['players'][0]['id'] == alice
