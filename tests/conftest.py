import os
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Loggers are configured on import, keep their log file out of the checkout
os.environ.setdefault("LETSCHAT_LOG_DIR", tempfile.mkdtemp(prefix="letschat-logs-"))

from client.ws_client import SendError


class DummyWebSocket:
    """Stands in for websockets.ClientConnection: records sends, replays scripted frames."""

    def __init__(self, frames: Optional[List] = None) -> None:
        self.sent_messages: List[str] = []
        self.frames = list(frames or [])
        self.closed = False
        self.close_code: Optional[int] = None

    async def send(self, data: str) -> None:
        self.sent_messages.append(data)

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        self.closed = True
        self.close_code = code

    def __aiter__(self):
        return self._iter()

    async def _iter(self):
        for frame in self.frames:
            yield frame


class FakeSession:
    """ClientSession double for ChatClient tests."""

    def __init__(self, fail_sends: bool = False) -> None:
        self.sent: List[str] = []
        self.fail_sends = fail_sends

    async def send(self, text: str) -> None:
        if self.fail_sends:
            raise SendError("connection closed")
        self.sent.append(text)

    async def recv_loop(self, handler) -> None:
        pass


@pytest.fixture
def fake_session():
    return FakeSession()
