from __future__ import annotations
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from shared.envelope import Envelope, MalformedPayload, message_envelope, register_envelope
from shared.log import get_logger, log_chat_frame
from shared.message_types import MessageType
from shared.utils import avatar_url, is_gif_payload

logger = get_logger(__name__)


class EmptySubmission(Exception):
    """User pressed send on a blank input. Not a real error, never surfaced."""
    pass


@dataclass(frozen=True)
class UserProfile:
    name: str
    avatar_url: str
    online: bool = True

    @classmethod
    def online_from_name(cls, name: str) -> UserProfile:
        return cls(name=name, avatar_url=avatar_url(name), online=True)


@dataclass(frozen=True)
class ChatMessage:
    from_: str
    text: str

    @property
    def is_gif(self) -> bool:
        return is_gif_payload(self.text)


@dataclass(frozen=True)
class ChatState:
    """
    Everything the client knows about the chat. Snapshots are immutable:
    every transition returns a new ChatState.

    roster is replaced wholesale by each "users" event, messages only ever
    grow, local_username never changes after init_session.
    """
    local_username: str
    roster: Tuple[UserProfile, ...] = ()
    messages: Tuple[ChatMessage, ...] = ()

    def avatar_for(self, name: str) -> str:
        """Avatar of the first roster entry named `name`, blank when unknown"""
        for user in self.roster:
            if user.name == name:
                return user.avatar_url
        return ""

    def is_own(self, message: ChatMessage) -> bool:
        return message.from_ == self.local_username

    def online_names(self) -> List[str]:
        return [u.name for u in self.roster if u.online]


class Submission(NamedTuple):
    state: ChatState
    envelope: Optional[Envelope]
    clear_input: bool


# ========================================
#           REDUCER
# ========================================

def init_session(local_username: str) -> Tuple[ChatState, Envelope]:
    """Starting state plus the register envelope that announces us to the server."""
    return ChatState(local_username=local_username), register_envelope(local_username)


def _apply_users(state: ChatState, envelope: Envelope) -> ChatState:
    names = envelope.data_array or ()
    roster = tuple(UserProfile.online_from_name(name) for name in names)
    return replace(state, roster=roster)


def _apply_message(state: ChatState, envelope: Envelope) -> ChatState:
    try:
        payload = envelope.chat_payload()
    except MalformedPayload as e:
        log_chat_frame(logger, "warning", f"Malformed message payload, ignoring: {e}",
                       envelope=envelope, username=state.local_username)
        return state
    if payload is None:
        log_chat_frame(logger, "warning", "Message envelope without payload, ignoring",
                       envelope=envelope, username=state.local_username)
        return state
    message = ChatMessage(from_=payload.from_, text=payload.message)
    return replace(state, messages=state.messages + (message,))


InboundReducer = Callable[[ChatState, Envelope], ChatState]

_INBOUND_REDUCERS: Dict[MessageType, InboundReducer] = {
    MessageType.USERS: _apply_users,
    MessageType.MESSAGE: _apply_message,
}


def apply_inbound(state: ChatState, envelope: Envelope) -> ChatState:
    """
    Pure transition for one inbound envelope.

    Unknown kinds, and kinds the server is not expected to send, return the
    same state object unchanged.
    """
    reducer = _INBOUND_REDUCERS.get(envelope.kind) if envelope.kind else None
    if reducer is None:
        log_chat_frame(logger, "debug", "No transition for inbound kind",
                       envelope=envelope, username=state.local_username)
        return state
    return reducer(state, envelope)


def validate_outgoing(raw_text: str) -> str:
    """Returns the text to send, raises EmptySubmission for blank input."""
    if not raw_text.strip():
        raise EmptySubmission("message is empty after trimming")
    return raw_text


def submit_outgoing(state: ChatState, raw_text: str) -> Submission:
    """
    Turn user input into an outbound "message" envelope.

    The message is not appended to state.messages here: it only enters the
    log when the server echoes it back.
    """
    try:
        text = validate_outgoing(raw_text)
    except EmptySubmission as e:
        logger.debug("Ignoring submission: %s", e)
        return Submission(state=state, envelope=None, clear_input=False)
    return Submission(state=state, envelope=message_envelope(text), clear_input=True)
