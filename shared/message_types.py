from __future__ import annotations

from enum import Enum
from typing import Optional, Set


class MessageType(str, Enum):
    """Chat protocol message types, as carried in the envelope's messageType field."""

    USERS = "users"          # server -> client, full roster snapshot in dataArray
    REGISTER = "register"    # client -> server, once per session, username in data
    MESSAGE = "message"      # both ways, raw text up / nested {from, message} down

    @classmethod
    def lookup(cls, value: str) -> Optional[MessageType]:
        """MessageType for `value`, or None for kinds this client does not know."""
        try:
            return cls(value)
        except ValueError:
            return None


# Message types a server pushes
SERVER_MESSAGES: Set[MessageType] = {
    MessageType.USERS,
    MessageType.MESSAGE,
}
