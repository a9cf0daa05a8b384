import json
import pytest

from client.state import (
    ChatMessage,
    ChatState,
    EmptySubmission,
    UserProfile,
    apply_inbound,
    init_session,
    submit_outgoing,
    validate_outgoing,
)
from shared.envelope import (
    ChatPayload,
    Envelope,
    chat_message_envelope,
    create_envelope,
    register_envelope,
    users_envelope,
)
from shared.message_types import MessageType
from shared.utils import avatar_url, is_gif_payload


def test_init_session_emits_register():
    state, envelope = init_session("alice")
    assert state == ChatState(local_username="alice")
    assert state.roster == ()
    assert state.messages == ()
    assert envelope.message_type == "register"
    assert envelope.data == "alice"


def test_users_event_builds_online_roster():
    state, _ = init_session("alice")
    state = apply_inbound(state, users_envelope(["alice", "bob"]))
    assert [(u.name, u.online) for u in state.roster] == [("alice", True), ("bob", True)]
    assert state.roster[1].avatar_url == avatar_url("bob")


def test_latest_users_event_wins():
    state, _ = init_session("alice")
    for names in (["alice", "bob", "carol"], ["carol"], ["dave", "alice"]):
        state = apply_inbound(state, users_envelope(names))
    assert [u.name for u in state.roster] == ["dave", "alice"]


def test_users_event_with_null_list_empties_roster():
    state, _ = init_session("alice")
    state = apply_inbound(state, users_envelope(["alice"]))
    state = apply_inbound(state, Envelope.from_json('{"messageType":"users","dataArray":null}'))
    assert state.roster == ()


def test_users_event_keeps_messages():
    state, _ = init_session("alice")
    state = apply_inbound(state, chat_message_envelope("bob", "hi"))
    state = apply_inbound(state, users_envelope(["bob"]))
    assert state.messages == (ChatMessage(from_="bob", text="hi"),)


def test_message_event_appends():
    state, _ = init_session("alice")
    raw = json.dumps({"messageType": "message", "data": "{\"from\":\"bob\",\"message\":\"hi\"}"})
    state = apply_inbound(state, Envelope.from_json(raw))
    assert state.messages == (ChatMessage(from_="bob", text="hi"),)


def test_messages_keep_arrival_order_and_duplicates():
    state, _ = init_session("alice")
    sent = [("bob", "hi"), ("alice", "hey"), ("bob", "hi"), ("bob", "hi")]
    for i, (sender, text) in enumerate(sent, start=1):
        state = apply_inbound(state, chat_message_envelope(sender, text))
        assert len(state.messages) == i
    assert [(m.from_, m.text) for m in state.messages] == sent


def test_message_without_data_is_noop():
    state, _ = init_session("alice")
    state = apply_inbound(state, chat_message_envelope("bob", "hi"))
    null_message = Envelope.from_json('{"messageType":"message","data":null}')
    assert apply_inbound(state, null_message) is state
    assert len(state.messages) == 1


def test_unknown_and_client_kinds_are_noops():
    state, _ = init_session("alice")
    assert apply_inbound(state, Envelope(message_type="typing", data="bob")) is state
    assert apply_inbound(state, register_envelope("bob")) is state


def test_blank_submission_is_ignored():
    state, _ = init_session("alice")
    for raw in ("", "   ", "\t\n"):
        submission = submit_outgoing(state, raw)
        assert submission.envelope is None
        assert submission.state is state
        assert submission.clear_input is False


def test_validate_outgoing_raises_for_blank():
    with pytest.raises(EmptySubmission):
        validate_outgoing("  ")
    assert validate_outgoing(" x ") == " x "


def test_submission_sends_untrimmed_text_without_local_echo():
    state, _ = init_session("alice")
    submission = submit_outgoing(state, "  hello  ")
    assert submission.envelope.message_type == "message"
    assert submission.envelope.data == "  hello  "
    assert submission.clear_input is True
    assert submission.state.messages == ()


def test_gif_classification_is_case_insensitive():
    assert is_gif_payload("hello.GIF")
    assert is_gif_payload("https://media.example/cat.gif")
    assert not is_gif_payload("gif")
    assert not is_gif_payload("cat.gifs")
    assert ChatMessage(from_="bob", text="party.Gif").is_gif


def test_avatar_lookup_and_ownership():
    state, _ = init_session("alice")
    state = apply_inbound(state, users_envelope(["alice", "bob"]))
    state = apply_inbound(state, chat_message_envelope("bob", "hi"))
    state = apply_inbound(state, chat_message_envelope("ghost", "boo"))
    bob_msg, ghost_msg = state.messages
    assert state.avatar_for(bob_msg.from_) == avatar_url("bob")
    assert state.avatar_for(ghost_msg.from_) == ""
    assert not state.is_own(bob_msg)
    assert state.is_own(ChatMessage(from_="alice", text="me"))


def test_avatar_url_is_deterministic():
    assert avatar_url("bob") == "https://avatars.dicebear.com/api/adventurer-neutral/bob.svg"
    assert avatar_url("mary jane") == avatar_url("mary jane")
    assert avatar_url("mary jane").endswith("/mary%20jane.svg")
    assert UserProfile.online_from_name("bob").online is True


def test_message_envelope_built_in_code_appends():
    state, _ = init_session("alice")
    envelope = create_envelope(MessageType.MESSAGE, data=ChatPayload(from_="bob", message="hi").to_json())
    state = apply_inbound(state, envelope)
    assert state.messages == (ChatMessage(from_="bob", text="hi"),)

    direct = Envelope(message_type="message", data='{"from":"carol","message":"yo"}')
    state = apply_inbound(state, direct)
    assert state.messages[-1] == ChatMessage(from_="carol", text="yo")


def test_message_with_bad_nested_data_is_noop():
    state, _ = init_session("alice")
    for data in ("plain text", '{"from":"bob"}', "[" * 100000):
        assert apply_inbound(state, Envelope(message_type="message", data=data)) is state
