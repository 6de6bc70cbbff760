"""
conversation state for the portfolio chat
keeps the ordered transcript, folds streamed fragments into the pending
assistant message and tells subscribers about every change
"""

import logging
import threading
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Tuple, Union

from chat_session import ChatSession, create_session
from errors import ChatInitError, ContextFetchError, normalize_error
from prompts import (
    CONTEXT_NOT_LOADED,
    CONTEXT_READY,
    EMPTY_RESUME,
    GREETING,
    LOADING_CONTEXT,
    STREAM_ERROR_PREFIX,
    UNKNOWN_CHAT_ERROR,
)
from resume_manager import ContextBundle, NoResumeYet, ResumeManager

logger = logging.getLogger(__name__)

USER = "user"
ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str

    def __post_init__(self):
        if self.role not in (USER, ASSISTANT):
            raise ValueError(f"unknown chat role: {self.role}")


Listener = Callable[[Tuple[ChatMessage, ...]], None]


class ChatHistory:
    """
    ordered transcript, insertion order is conversation order
    only the last message can change, and only while a turn is open
    listeners get a fresh snapshot after every change
    """

    def __init__(self, messages: Optional[Iterable[ChatMessage]] = None):
        self._messages: List[ChatMessage] = list(messages or [])
        self._listeners: List[Listener] = []
        self._turn_open = False
        self._lock = threading.RLock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """registers a listener and returns the function that removes it"""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> Tuple[ChatMessage, ...]:
        with self._lock:
            return tuple(self._messages)

    def __len__(self):
        return len(self._messages)

    def _publish(self):
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    @property
    def turn_open(self) -> bool:
        return self._turn_open

    def reset(self, message: ChatMessage):
        """wipes the transcript down to a single message"""
        with self._lock:
            if self._turn_open:
                raise RuntimeError("cannot reset the transcript while a response is streaming")
            self._messages = [message]
        self._publish()

    def append(self, message: ChatMessage):
        with self._lock:
            if self._turn_open:
                raise RuntimeError("cannot append while a response is streaming")
            self._messages.append(message)
        self._publish()

    def begin_turn(self, user_text: str):
        """adds the user message plus an empty assistant placeholder"""
        with self._lock:
            if self._turn_open:
                raise RuntimeError("a response is already streaming")
            self._messages.append(ChatMessage(USER, user_text))
            self._messages.append(ChatMessage(ASSISTANT, ""))
            self._turn_open = True
        self._publish()

    def update_tail(self, content: str):
        with self._lock:
            if not self._turn_open:
                raise RuntimeError("no open turn to update")
            self._messages[-1] = replace(self._messages[-1], content=content)
        self._publish()

    def finalize(self):
        with self._lock:
            self._turn_open = False


def reduce_stream(fragments: Iterable[str], on_update: Callable[[str], None]) -> str:
    """
    concatenates fragments in arrival order, publishing the running text
    after each non-empty one, returns the final text
    """
    buffer = ""
    for fragment in fragments:
        if not fragment:
            continue
        buffer += fragment
        on_update(buffer)
    return buffer


class PortfolioChat:
    """
    the chat the interface talks to
    owns the transcript, the current session and the thinking flag
    """

    def __init__(self, manager: ResumeManager,
                 session_factory: Callable[[ContextBundle], ChatSession] = create_session):
        self.manager = manager
        self.session_factory = session_factory
        self.history = ChatHistory([ChatMessage(ASSISTANT, GREETING)])
        self.session: Optional[ChatSession] = None
        self.context: Optional[ContextBundle] = None
        self.error: Optional[str] = None
        self.is_thinking = False
        self.is_loading_context = False
        self._flag_lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self.is_thinking or self.is_loading_context

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        return self.history.subscribe(listener)

    def _show(self, content: str):
        self.history.reset(ChatMessage(ASSISTANT, content))

    def load_context(self) -> Union[ContextBundle, NoResumeYet, None]:
        """
        refreshes the context and rebuilds the session from it
        the transcript is cleared to one message describing how it went
        returns the bundle or NoResumeYet, or None when loading failed
        """
        with self._flag_lock:
            if self.is_thinking or self.is_loading_context:
                logger.warning("context refresh ignored, chat is busy")
                return None
            self.is_loading_context = True
        self.error = None
        self._show(LOADING_CONTEXT)

        try:
            try:
                outcome = self.manager.refresh()
            except ContextFetchError as e:
                self.error = e.message
                self._show(f"Error: {e.message}")
                return None
            except Exception as e:
                logger.exception("unexpected error while loading context")
                self.error = normalize_error(e)
                self._show(f"Error: {self.error}")
                return None

            if isinstance(outcome, NoResumeYet):
                self.session = None
                self.context = None
                self._show(outcome.message)
                return outcome

            self.context = outcome
            if not outcome.resume_text:
                self.session = None
                self._show(EMPTY_RESUME)
                return outcome

            try:
                self.session = self.session_factory(outcome)
            except ChatInitError as e:
                self.session = None
                self.error = e.message
                self._show(f"Error: {e.message}")
                return None

            self._show(CONTEXT_READY)
            return outcome
        finally:
            with self._flag_lock:
                self.is_loading_context = False

    def send_message(self, text: str) -> bool:
        """
        runs one question through the current session
        returns False without touching anything when the text is blank or
        another send or refresh is still running
        """
        text = text.strip()
        if not text:
            return False
        with self._flag_lock:
            if self.is_thinking or self.is_loading_context:
                logger.warning("send rejected, a response is still in flight")
                return False
            self.is_thinking = True
        self.error = None

        try:
            self.history.begin_turn(text)
            session = self.session
            if session is None:
                self.history.update_tail(CONTEXT_NOT_LOADED)
                return True
            try:
                reduce_stream(session.send(text), self.history.update_tail)
            except Exception as e:
                logger.error("chat api error: %r", e)
                message = normalize_error(e, fallback=UNKNOWN_CHAT_ERROR)
                self.error = f"Error: {message}"
                self.history.update_tail(f"{STREAM_ERROR_PREFIX} {message}")
            return True
        finally:
            self.history.finalize()
            with self._flag_lock:
                self.is_thinking = False
