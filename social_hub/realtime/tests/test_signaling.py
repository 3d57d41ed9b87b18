import pytest

from social_hub.realtime import signaling
from social_hub.realtime.signaling import Account
from social_hub.realtime.signaling import Close
from social_hub.realtime.signaling import Connection
from social_hub.realtime.signaling import ConnectionState
from social_hub.realtime.signaling import Emit
from social_hub.realtime.signaling import Event
from social_hub.realtime.signaling import JoinRoom
from social_hub.realtime.signaling import Register
from social_hub.realtime.signaling import Unregister
from social_hub.realtime.signaling import handle


def authenticated(identity="a", sid="sid-a"):
    return Connection(sid=sid, identity=identity, state=ConnectionState.AUTHENTICATED)


def registered(identity="a", sid="sid-a"):
    return Connection(sid=sid, identity=identity, state=ConnectionState.REGISTERED)


def offer(to="b", sender="a", body=None):
    data = {"to": to, "from": sender, "offer": body or {"sdp": "v=0"}}
    return Event(signaling.CALL_USER, data)


def error_message(effects):
    assert len(effects) == 1
    (effect,) = effects
    assert isinstance(effect, Emit)
    assert effect.event == signaling.CALL_ERROR
    return effect.data["message"]


class TestConnect:
    def test_verified_identity_authenticates_and_joins_private_room(self):
        conn, effects = handle(Event(signaling.CONNECT, "42"), Connection(sid="s1"))

        assert conn.state is ConnectionState.AUTHENTICATED
        assert conn.identity == "42"
        assert effects == [JoinRoom("user_42")]

    def test_failed_verification_sends_auth_error_then_closes(self):
        conn, effects = handle(Event(signaling.CONNECT, None), Connection(sid="s1"))

        assert conn.state is ConnectionState.CLOSED
        assert effects == [
            Emit(signaling.AUTH_ERROR, {"message": "Invalid or expired token"}, room="s1"),
            Close(),
        ]

    def test_closed_connection_ignores_every_event(self):
        closed = Connection(sid="s1", state=ConnectionState.CLOSED)
        for name in (*signaling.CLIENT_EVENTS, signaling.CONNECT):
            conn, effects = handle(Event(name, {"to": "b", "from": "a"}), closed)
            assert conn is closed
            assert effects == []

    def test_events_before_authentication_are_dropped(self):
        conn = Connection(sid="s1")
        new_conn, effects = handle(offer(), conn, online={"b"}, target=Account("b"))
        assert new_conn is conn
        assert effects == []


class TestAddUser:
    def test_own_identity_registers(self):
        conn, effects = handle(Event(signaling.ADD_USER, "a"), authenticated())

        assert conn.state is ConnectionState.REGISTERED
        assert effects == [Register("a")]

    def test_numeric_identity_is_normalized(self):
        conn, effects = handle(
            Event(signaling.ADD_USER, 7),
            authenticated(identity="7"),
        )
        assert conn.state is ConnectionState.REGISTERED
        assert effects == [Register("7")]

    @pytest.mark.parametrize(
        "claimed",
        ["b", "", " a ", "a\n", None, {"id": "a"}, True],
    )
    def test_mismatch_is_silently_ignored(self, claimed):
        conn = authenticated()
        new_conn, effects = handle(Event(signaling.ADD_USER, claimed), conn)

        assert new_conn == conn
        assert effects == []

    def test_repeated_registration_stays_registered(self):
        conn, effects = handle(Event(signaling.ADD_USER, "a"), registered())
        assert conn.state is ConnectionState.REGISTERED
        assert effects == [Register("a")]


class TestDisconnect:
    def test_registered_connection_unregisters(self):
        conn, effects = handle(Event(signaling.DISCONNECT), registered())

        assert conn.state is ConnectionState.CLOSED
        assert effects == [Unregister("a")]

    def test_unregistered_connection_leaves_presence_alone(self):
        conn, effects = handle(Event(signaling.DISCONNECT), authenticated())

        assert conn.state is ConnectionState.CLOSED
        assert effects == []


class TestCallOffer:
    def test_offer_is_forwarded_to_target_room_only(self):
        _, effects = handle(
            offer(body={"sdp": "x"}),
            registered(),
            online={"a", "b"},
            target=Account("b"),
        )

        assert effects == [
            Emit(
                signaling.CALL_USER,
                {"from": "a", "offer": {"sdp": "x"}},
                room="user_b",
                skip_sid="sid-a",
            ),
        ]

    def test_spoofed_sender_is_unauthorized(self):
        _, effects = handle(
            offer(sender="c"),
            registered(),
            online={"a", "b", "c"},
            target=Account("b"),
        )

        assert error_message(effects) == "Unauthorized caller"
        assert effects[0].room == "sid-a"

    def test_authorization_runs_before_other_checks(self):
        # Unknown, offline target: still reported as unauthorized.
        _, effects = handle(offer(to="zzz", sender="c"), registered(), online=set())
        assert error_message(effects) == "Unauthorized caller"

    def test_missing_sender_is_unauthorized(self):
        event = Event(signaling.CALL_USER, {"to": "b", "offer": {}})
        _, effects = handle(event, registered(), online={"b"}, target=Account("b"))
        assert error_message(effects) == "Unauthorized caller"

    def test_unknown_target(self):
        _, effects = handle(offer(), registered(), online={"b"}, target=None)
        assert error_message(effects) == "User not found"

    def test_blocked_caller(self):
        target = Account("b", blocked_users=frozenset({"a"}))
        _, effects = handle(offer(), registered(), online={"b"}, target=target)
        assert error_message(effects) == "You are blocked by this user"

    def test_block_check_precedes_presence_check(self):
        target = Account("b", blocked_users=frozenset({"a"}))
        _, effects = handle(offer(), registered(), online=set(), target=target)
        assert error_message(effects) == "You are blocked by this user"

    def test_target_is_routed_by_its_account_identity(self):
        # "05" resolves to account "5"
        _, effects = handle(
            offer(to="05"),
            registered(),
            online={"a", "5"},
            target=Account("5"),
        )

        assert [(e.event, e.room) for e in effects] == [(signaling.CALL_USER, "user_5")]

    def test_offline_target(self):
        _, effects = handle(offer(), registered(), online={"a"}, target=Account("b"))
        assert error_message(effects) == "User is offline"

    def test_non_dict_payload_is_unauthorized(self):
        event = Event(signaling.CALL_USER, "garbage")
        _, effects = handle(event, registered(), online={"b"}, target=Account("b"))
        assert error_message(effects) == "Unauthorized caller"

    def test_authenticated_but_unregistered_caller_may_call(self):
        _, effects = handle(offer(), authenticated(), online={"b"}, target=Account("b"))
        assert [e.event for e in effects] == [signaling.CALL_USER]

    def test_offer_does_not_change_connection(self):
        conn = registered()
        new_conn, _ = handle(offer(), conn, online={"b"}, target=Account("b"))
        assert new_conn is conn


class TestRelay:
    @pytest.mark.parametrize(
        ("name", "data", "outbound", "payload"),
        [
            (
                signaling.ANSWER_CALL,
                {"to": "b", "answer": {"sdp": "ans"}},
                signaling.CALL_ACCEPTED,
                {"answer": {"sdp": "ans"}},
            ),
            (
                signaling.ICE_CANDIDATE,
                {"to": "b", "candidate": {"candidate": "c1"}},
                signaling.ICE_CANDIDATE,
                {"candidate": {"candidate": "c1"}},
            ),
            (signaling.END_CALL, {"to": "b"}, signaling.CALL_ENDED, None),
            (signaling.REJECT_CALL, {"to": "b"}, signaling.CALL_REJECTED, None),
        ],
    )
    def test_forwarded_when_target_online(self, name, data, outbound, payload):
        _, effects = handle(Event(name, data), registered(), online={"b"})

        assert effects == [Emit(outbound, payload, room="user_b", skip_sid="sid-a")]

    @pytest.mark.parametrize(
        "name",
        [
            signaling.ANSWER_CALL,
            signaling.ICE_CANDIDATE,
            signaling.END_CALL,
            signaling.REJECT_CALL,
        ],
    )
    def test_silently_dropped_when_target_offline(self, name):
        _, effects = handle(Event(name, {"to": "b"}), registered(), online={"a"})
        assert effects == []

    def test_missing_target_is_dropped(self):
        _, effects = handle(Event(signaling.END_CALL, {}), registered(), online={"b"})
        assert effects == []

    def test_relay_skips_the_block_check(self):
        # Only the offer consults the block list.
        target = Account("b", blocked_users=frozenset({"a"}))
        _, effects = handle(
            Event(signaling.ANSWER_CALL, {"to": "b", "answer": {}}),
            registered(),
            online={"b"},
            target=target,
        )
        assert [e.event for e in effects] == [signaling.CALL_ACCEPTED]


class TestLookupIdentity:
    def test_authorized_offer_needs_target_account(self):
        assert signaling.lookup_identity(offer(to=5), registered()) == "5"

    def test_spoofed_offer_needs_no_lookup(self):
        assert signaling.lookup_identity(offer(sender="c"), registered()) is None

    def test_relay_events_need_no_lookup(self):
        event = Event(signaling.ANSWER_CALL, {"to": "b", "from": "a"})
        assert signaling.lookup_identity(event, registered()) is None

    def test_unauthenticated_connection_needs_no_lookup(self):
        assert signaling.lookup_identity(offer(), Connection(sid="s")) is None


def test_account_block_relation_is_directional():
    a = Account("a", blocked_users=frozenset({"b"}))
    b = Account("b")
    assert a.has_blocked("b")
    assert not b.has_blocked("a")
    assert not a.has_blocked(None)
