#!/usr/bin/env python3
"""
Let's Chat client session controller

Ties the WebSocket channel, the envelope codec and the state reducer
together. Presentation code talks only to ChatClient: it reads `state`,
subscribes to snapshots and calls the two intents.

    client = ChatClient(ClientSession("ws://127.0.0.1:8080"))
    await client.session.connect()
    await client.request_register("alice")
    await client.run()      # returns when the server goes away
"""

from __future__ import annotations
from typing import Callable, List, Optional, Union

from client.state import ChatState, apply_inbound, init_session, submit_outgoing
from client.ws_client import ClientSession, SendError
from shared.envelope import Envelope, ProtocolError
from shared.log import get_logger, log_chat_frame
from shared.message_types import SERVER_MESSAGES

logger = get_logger(__name__)


SnapshotListener = Callable[[ChatState], None]


class ChatClient:

    def __init__(self, session: ClientSession) -> None:
        self.session = session
        self._state: Optional[ChatState] = None
        self._listeners: List[SnapshotListener] = []
        self.dropped_frames = 0

    @property
    def registered(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> ChatState:
        if self._state is None:
            raise RuntimeError("request_register() has not been called")
        return self._state

    def subscribe(self, listener: SnapshotListener) -> None:
        """Call `listener` with every new snapshot, starting with the current one."""
        self._listeners.append(listener)
        if self._state is not None:
            listener(self._state)

    def _publish(self, state: ChatState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    # ========================================
    #           INTENTS
    # ========================================

    async def request_register(self, username: str) -> ChatState:
        """Start the session as `username` and announce it to the server, once."""
        if self._state is not None:
            raise RuntimeError(f"already registered as {self._state.local_username!r}")
        state, envelope = init_session(username)
        self._publish(state)
        try:
            await self.session.send(envelope.to_json())
        except SendError as e:
            log_chat_frame(logger, "error", f"Register not sent: {e}",
                           envelope=envelope, username=username)
            raise
        log_chat_frame(logger, "debug", "Register sent", envelope=envelope, username=username)
        return state

    async def request_send_message(self, raw_text: str) -> bool:
        """
        Submit user input. Returns True when the presentation should clear
        its input box.

        Blank input returns False without sending. A send failure raises
        SendError and the draft should be kept.
        """
        submission = submit_outgoing(self.state, raw_text)
        if submission.envelope is None:
            return False
        try:
            await self.session.send(submission.envelope.to_json())
        except SendError as e:
            log_chat_frame(logger, "warning", f"Message not sent: {e}",
                           envelope=submission.envelope, username=self.state.local_username)
            raise
        return submission.clear_input

    # ========================================
    #           INBOUND
    # ========================================

    async def handle_frame(self, raw: Union[str, bytes]) -> None:
        """Decode one server frame and apply it. Bad frames are dropped, never fatal."""
        if self._state is None:
            logger.warning("Frame received before registration, dropping")
            self.dropped_frames += 1
            return
        try:
            envelope = Envelope.from_json(raw)
        except ProtocolError as e:
            self.dropped_frames += 1
            logger.warning("Dropped inbound frame (%s): %s", type(e).__name__, e,
                           extra={"username": self._state.local_username})
            return

        if envelope.kind not in SERVER_MESSAGES:
            log_chat_frame(logger, "debug", "Ignoring unexpected inbound kind",
                           envelope=envelope, username=self._state.local_username)
            return

        new_state = apply_inbound(self._state, envelope)
        if new_state is not self._state:
            self._publish(new_state)

    async def run(self) -> None:
        """Process inbound frames until the connection closes."""
        await self.session.recv_loop(self.handle_frame)
