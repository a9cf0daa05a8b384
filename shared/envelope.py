from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Tuple, Union
import json

from shared.message_types import MessageType
from shared.utils import is_optional_str, is_str_list


class ProtocolError(Exception):
    """Base class for inbound frames that cannot be decoded."""
    pass
class MalformedEnvelope(ProtocolError):
    """Raised when the top-level frame is not a valid envelope."""
    pass
class MalformedPayload(ProtocolError):
    """Raised when the nested data of a server-sent message cannot be decoded."""
    pass


@dataclass(frozen=True)
class ChatPayload:
    """
    Nested body of a server-sent "message" envelope. On the wire it is a JSON
    string inside the envelope's data field:

        {"from": "bob", "message": "hi"}
    """
    from_: str      # sender display name (renamed to avoid keyword collision)
    message: str

    @classmethod
    def from_json(cls, json_str: str) -> 'ChatPayload':
        try:
            data = json.loads(json_str)
        except (json.JSONDecodeError, RecursionError) as e:
            raise MalformedPayload(f"Invalid JSON: {e}")

        if not isinstance(data, dict):
            raise MalformedPayload("message payload must be a JSON object")
        missing = {'from', 'message'} - set(data.keys())
        if missing:
            raise MalformedPayload(f"Missing required fields: {sorted(missing)}")
        if not isinstance(data['from'], str):
            raise MalformedPayload("'from' must be a string")
        if not isinstance(data['message'], str):
            raise MalformedPayload("'message' must be a string")

        return cls(from_=data['from'], message=data['message'])

    def to_dict(self) -> Dict[str, Any]:
        return {'from': self.from_, 'message': self.message}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(',', ':'), sort_keys=True)


@dataclass(frozen=True)
class Envelope:
    """
    One wire frame:
    {
    "messageType": "users" | "register" | "message",
    "dataArray":   [STRING] | null   (users)
    "data":        STRING | null     (register, message)
    }

    messageType is kept verbatim so frames of kinds this client does not know
    still decode; `kind` resolves it to a MessageType or None.

    For server-sent "message" frames data holds the nested ChatPayload as
    JSON text and `chat_payload()` decodes it. For client-sent "message"
    frames data is the raw user text.
    """
    message_type: str
    data_array: Optional[Tuple[str, ...]] = None
    data: Optional[str] = None

    @property
    def kind(self) -> Optional[MessageType]:
        return MessageType.lookup(self.message_type)

    def chat_payload(self) -> Optional[ChatPayload]:
        """Nested payload of a server-sent message, None when data is null.

        Raises MalformedPayload when data is not a valid nested payload.
        """
        if self.data is None:
            return None
        return ChatPayload.from_json(self.data)

    @classmethod
    def from_json(cls, frame: Union[str, bytes], *, outbound: bool = False) -> 'Envelope':
        """
        Parse a text frame into an Envelope, validating structure.

        Binary frames must be UTF-8. outbound=True reads the frame in the
        client -> server direction where the data of a "message" is plain
        text instead of a nested payload.
        """
        if isinstance(frame, bytes):
            try:
                frame = frame.decode('utf-8')
            except UnicodeDecodeError as e:
                raise MalformedEnvelope(f"Frame is not UTF-8: {e}")
        try:
            data = json.loads(frame)
        except (json.JSONDecodeError, RecursionError) as e:
            raise MalformedEnvelope(f"Invalid JSON: {e}")

        return cls.from_dict(data, outbound=outbound)

    @classmethod
    def from_dict(cls, data: Any, *, outbound: bool = False) -> 'Envelope':
        """Create Envelope from a decoded JSON value, validating fields"""
        if not isinstance(data, dict):
            raise MalformedEnvelope("frame must be a JSON object")
        if 'messageType' not in data:
            raise MalformedEnvelope("Missing required field: 'messageType'")
        if not isinstance(data['messageType'], str):
            raise MalformedEnvelope("'messageType' must be a string")

        data_array = data.get('dataArray')
        if data_array is not None and not is_str_list(data_array):
            raise MalformedEnvelope("'dataArray' must be a list of strings or null")

        text = data.get('data')
        if not is_optional_str(text):
            raise MalformedEnvelope("'data' must be a string or null")

        envelope = cls(
            message_type=data['messageType'],
            data_array=tuple(data_array) if data_array is not None else None,
            data=text,
        )
        if not outbound and envelope.kind is MessageType.MESSAGE:
            envelope.chat_payload()
        return envelope

    def to_dict(self) -> Dict[str, Any]:
        """Convert Envelope back to its wire dictionary, absent fields as null"""
        return {
            'messageType': self.message_type,
            'dataArray': list(self.data_array) if self.data_array is not None else None,
            'data': self.data,
        }

    def to_json(self) -> str:
        """Convert Envelope to a compact JSON text frame"""
        return json.dumps(self.to_dict(), separators=(',', ':'), sort_keys=True)


def create_envelope(msg_type: MessageType, data: Optional[str] = None,
                    data_array: Optional[Iterable[str]] = None) -> Envelope:
    """Helper to build an envelope of a known kind"""
    return Envelope(
        message_type=msg_type.value,
        data_array=tuple(data_array) if data_array is not None else None,
        data=data,
    )


def register_envelope(username: str) -> Envelope:
    return create_envelope(MessageType.REGISTER, data=username)


def users_envelope(names: Iterable[str]) -> Envelope:
    return create_envelope(MessageType.USERS, data_array=names)


def message_envelope(text: str) -> Envelope:
    """Client-side message: data is exactly what the user typed"""
    return create_envelope(MessageType.MESSAGE, data=text)


def chat_message_envelope(from_: str, text: str) -> Envelope:
    """Server-side message as broadcast to every client, with the nested payload"""
    payload = ChatPayload(from_=from_, message=text)
    return create_envelope(MessageType.MESSAGE, data=payload.to_json())
