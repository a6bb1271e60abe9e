"""
Socket.IO tests for Nexo Greencycle
Tests joining, switching and leaving pickup chat rooms
"""
from socket_events import ChatSubscriptions, room_for, subscriptions, broadcast_chat_message


def _token(headers):
    return headers['Authorization'].split(' ', 1)[1]


class TestChatSubscriptions:
    """Test the per-connection subscription registry"""

    def test_acquire_returns_replaced_thread(self):
        registry = ChatSubscriptions()
        assert registry.acquire('sid-1', 'pickup-a') is None
        assert registry.acquire('sid-1', 'pickup-b') == 'pickup-a'
        assert registry.current('sid-1') == 'pickup-b'
        assert len(registry) == 1

    def test_rejoining_same_thread(self):
        registry = ChatSubscriptions()
        registry.acquire('sid-1', 'pickup-a')
        assert registry.acquire('sid-1', 'pickup-a') is None

    def test_release(self):
        registry = ChatSubscriptions()
        registry.acquire('sid-1', 'pickup-a')
        assert registry.release('sid-1') == 'pickup-a'
        assert registry.release('sid-1') is None
        assert len(registry) == 0

    def test_room_name(self):
        assert room_for('abc') == 'pickup:abc'


class TestJoin:
    """Test chat:join authorization"""

    def test_participant_joins(self, auth_headers, test_pickup, socket_client_factory, received_events):
        socket_client = socket_client_factory()
        socket_client.emit('chat:join', {'pickup_request_id': test_pickup.id, 'token': _token(auth_headers)})

        joined = received_events(socket_client, 'chat:joined')
        assert joined == [{'room': f'pickup:{test_pickup.id}', 'pickup_request_id': test_pickup.id}]

    def test_invalid_token_rejected(self, test_pickup, socket_client_factory, received_events):
        socket_client = socket_client_factory()
        socket_client.emit('chat:join', {'pickup_request_id': test_pickup.id, 'token': 'garbage'})

        assert received_events(socket_client, 'chat:error') == [{'error': 'Unauthorized'}]

    def test_outsider_rejected(self, outsider_headers, test_pickup, socket_client_factory, received_events):
        socket_client = socket_client_factory()
        socket_client.emit('chat:join', {'pickup_request_id': test_pickup.id, 'token': _token(outsider_headers)})

        errors = received_events(socket_client, 'chat:error')
        assert len(errors) == 1
        assert 'access' in errors[0]['error']

    def test_unknown_pickup_rejected(self, auth_headers, socket_client_factory, received_events):
        socket_client = socket_client_factory()
        socket_client.emit('chat:join', {'pickup_request_id': 'missing', 'token': _token(auth_headers)})

        assert received_events(socket_client, 'chat:error') == [{'error': 'Pickup request not found'}]


class TestSwitchAndLeave:
    """A connection follows at most one thread"""

    def test_switching_threads_leaves_previous_room(self, auth_headers, make_pickup,
                                                    socket_client_factory, received_events):
        first = make_pickup()
        second = make_pickup()
        socket_client = socket_client_factory()
        token = _token(auth_headers)

        socket_client.emit('chat:join', {'pickup_request_id': first.id, 'token': token})
        socket_client.emit('chat:join', {'pickup_request_id': second.id, 'token': token})
        socket_client.get_received()

        broadcast_chat_message({'id': 'm1', 'pickup_request_id': first.id, 'message': 'old room'})
        broadcast_chat_message({'id': 'm2', 'pickup_request_id': second.id, 'message': 'new room'})

        assert [e['id'] for e in received_events(socket_client, 'chat:message')] == ['m2']

    def test_leave(self, auth_headers, test_pickup, socket_client_factory, received_events):
        socket_client = socket_client_factory()
        socket_client.emit('chat:join', {'pickup_request_id': test_pickup.id, 'token': _token(auth_headers)})
        socket_client.get_received()

        socket_client.emit('chat:leave', {})
        assert received_events(socket_client, 'chat:left') == [{'pickup_request_id': test_pickup.id}]

        broadcast_chat_message({'id': 'm1', 'pickup_request_id': test_pickup.id, 'message': 'after leave'})
        assert received_events(socket_client, 'chat:message') == []

    def test_disconnect_releases_subscription(self, auth_headers, test_pickup, socket_client_factory):
        socket_client = socket_client_factory()
        before = len(subscriptions)
        socket_client.emit('chat:join', {'pickup_request_id': test_pickup.id, 'token': _token(auth_headers)})
        assert len(subscriptions) == before + 1

        socket_client.disconnect()
        assert len(subscriptions) == before


class TestTyping:
    """Typing indicators go to the other side only"""

    def test_typing_excludes_sender(self, auth_headers, company_headers, test_pickup,
                                    socket_client_factory, received_events):
        producer_socket = socket_client_factory()
        company_socket = socket_client_factory()
        producer_socket.emit('chat:join', {'pickup_request_id': test_pickup.id, 'token': _token(auth_headers)})
        company_socket.emit('chat:join', {'pickup_request_id': test_pickup.id, 'token': _token(company_headers)})
        producer_socket.get_received()
        company_socket.get_received()

        producer_socket.emit('chat:typing', {'sender_name': 'Jane Wanjiku', 'is_typing': True})

        assert received_events(producer_socket, 'chat:typing') == []
        assert received_events(company_socket, 'chat:typing') == [{
            'pickup_request_id': test_pickup.id,
            'sender_name': 'Jane Wanjiku',
            'is_typing': True,
        }]
