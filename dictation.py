"""
voice input for the chat box
wraps an optional speech recognition capability in a two phase controller
(idle, listening) that writes transcripts into the editable input text
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)

IDLE = "idle"
LISTENING = "listening"


@dataclass(frozen=True)
class DictationState:
    phase: str = IDLE
    # input text at the moment listening started, transcripts go after it
    base_text: str = ""


@dataclass(frozen=True)
class RecognitionResult:
    transcript: str
    is_final: bool


class Recognizer:
    """
    one recognition pass, configured and driven the way a browser
    SpeechRecognition object is
    """

    continuous = False
    interim_results = False
    lang = "en-US"

    def __init__(self):
        self.on_start: Optional[Callable[[], None]] = None
        self.on_result: Optional[Callable[[int, Sequence[RecognitionResult]], None]] = None
        self.on_end: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None

    def start(self) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class SpeechCapability:
    """what the host environment offers for speech recognition, if anything"""

    def is_available(self) -> bool:
        raise NotImplementedError

    def create_recognizer(self) -> Recognizer:
        raise NotImplementedError


class UnavailableSpeechCapability(SpeechCapability):
    """hosts without speech recognition, the mic control stays disabled"""

    def is_available(self) -> bool:
        return False

    def create_recognizer(self) -> Recognizer:
        raise RuntimeError("speech recognition is not available in this environment")


BufferListener = Callable[[str, DictationState], None]


class DictationController:
    """
    keeps the chat input text and merges speech transcripts into it

    starting a pass snapshots the current text into base_text, every result
    event then rebuilds the text as base_text + final + interim so interim
    words get replaced on the next event instead of piling up
    stop, the recognizer's own end event and an error all land back in idle
    """

    def __init__(self, capability: SpeechCapability, text: str = "", lang: str = "en-US"):
        self.capability = capability
        self.lang = lang
        self.text = text
        self.state = DictationState()
        self._recognizer: Optional[Recognizer] = None
        self._listeners: List[BufferListener] = []

    @property
    def available(self) -> bool:
        return self.capability.is_available()

    @property
    def listening(self) -> bool:
        return self.state.phase == LISTENING

    def subscribe(self, listener: BufferListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self):
        for listener in list(self._listeners):
            listener(self.text, self.state)

    def set_text(self, text: str) -> None:
        """the user typed into the box"""
        self.text = text
        self._publish()

    def toggle(self) -> DictationState:
        if not self.available:
            logger.warning("speech recognition not supported here")
            return self.state
        if self.listening:
            self.stop()
        else:
            self.start()
        return self.state

    def start(self) -> None:
        if not self.available:
            logger.warning("speech recognition not supported here")
            return
        if self.listening:
            return
        recognizer = self.capability.create_recognizer()
        recognizer.continuous = True
        recognizer.interim_results = True
        recognizer.lang = self.lang
        recognizer.on_start = lambda: self._handle_start(recognizer)
        recognizer.on_result = lambda index, results: self._handle_result(recognizer, index, results)
        recognizer.on_end = lambda: self._handle_end(recognizer)
        recognizer.on_error = lambda error: self._handle_error(recognizer, error)

        self._recognizer = recognizer
        self.state = DictationState(LISTENING, f"{self.text} " if self.text else "")
        self._publish()
        try:
            recognizer.start()
        except Exception as e:
            logger.error("speech recognition failed to start: %s", e)
            self._go_idle()

    def stop(self) -> None:
        recognizer = self._recognizer
        if recognizer is not None:
            try:
                recognizer.stop()
            except Exception as e:
                logger.warning("error stopping speech recognition: %s", e)
        self._go_idle()

    def submit(self) -> str:
        """hands back the text for sending and empties the box"""
        if self.listening:
            self.stop()
        text = self.text.strip()
        self.set_text("")
        return text

    def _go_idle(self):
        self._recognizer = None
        if self.state.phase != IDLE:
            self.state = DictationState(IDLE, self.state.base_text)
            self._publish()

    def _is_current(self, recognizer: Recognizer) -> bool:
        # events from a released recognizer are ignored
        return recognizer is self._recognizer

    def _handle_start(self, recognizer: Recognizer):
        if self._is_current(recognizer):
            logger.debug("speech recognition started")

    def _handle_result(self, recognizer: Recognizer, result_index: int,
                       results: Sequence[RecognitionResult]):
        if not self._is_current(recognizer) or not self.listening:
            return
        final_transcript = ""
        interim_transcript = ""
        for result in results[result_index:]:
            if result.is_final:
                final_transcript += result.transcript
            else:
                interim_transcript += result.transcript
        self.text = self.state.base_text + final_transcript + interim_transcript
        self._publish()

    def _handle_end(self, recognizer: Recognizer):
        if self._is_current(recognizer):
            self._go_idle()

    def _handle_error(self, recognizer: Recognizer, error: str):
        if self._is_current(recognizer):
            logger.error("speech recognition error: %s", error)
            self._go_idle()
