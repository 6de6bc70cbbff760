"""
chat session with the openai backend, seeded once with the portfolio context
each send() streams the answer back fragment by fragment
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional

from openai import OpenAI

from config import Settings, get_settings, require_api_key
from errors import ChatInitError, StreamError, normalize_error
from prompts import CONTEXT_ACKNOWLEDGMENT, CONTEXT_REQUEST, MASTER_PROMPT, UNKNOWN_CHAT_ERROR
from resume_manager import ContextBundle

logger = logging.getLogger(__name__)


def build_context_string(bundle: ContextBundle) -> str:
    """
    serializes the bundle under fixed section labels
    empty fields are left out entirely
    """
    context = "--- CANDIDATE'S PROFILE CONTEXT ---\n\n"
    if bundle.resume_text:
        context += f"[RESUME CONTENT]:\n{bundle.resume_text}\n\n"
    if bundle.linkedin_about:
        context += f"[LINKEDIN 'ABOUT' SECTION]:\n{bundle.linkedin_about}\n\n"
    if bundle.github_url:
        context += f"[GITHUB PROFILE URL]:\n{bundle.github_url}\n\n"
    context += "--- END OF CONTEXT ---"
    return context


def date_stamped(user_text: str, now: datetime) -> str:
    """puts today's date ahead of the question so the model can work out ages"""
    return f"(Today's date is {now.strftime('%Y-%m-%d')})\n\n{user_text}"


class ChatSession:
    """
    one running conversation bound to one ContextBundle
    the bundle is copied in at construction, a new context needs a new session
    """

    def __init__(self, client: OpenAI, bundle: ContextBundle, model: str = "gpt-4o-mini",
                 temperature: float = 0.3, clock: Callable[[], datetime] = datetime.now):
        self.client = client
        self.bundle = bundle
        self.model = model
        self.temperature = temperature
        self.clock = clock
        self.messages: List[Dict[str, str]] = [
            {"role": "system", "content": MASTER_PROMPT},
            {"role": "user", "content": CONTEXT_REQUEST + build_context_string(bundle)},
            {"role": "assistant", "content": CONTEXT_ACKNOWLEDGMENT},
        ]

    def send(self, user_text: str) -> Iterator[str]:
        """
        submits one question and returns a lazy iterator of text fragments
        the date stamp is taken now, at call time, not when iteration starts
        the iterator can only be consumed once
        """
        enriched = date_stamped(user_text, self.clock())
        return self._stream(enriched)

    def _stream(self, enriched: str) -> Iterator[str]:
        request = self.messages + [{"role": "user", "content": enriched}]
        try:
            stream = self.client.chat.completions.create(
                model=self.model,
                messages=request,
                temperature=self.temperature,
                stream=True,
            )
        except Exception as e:
            logger.error("failed to start stream with the openai api: %r", e)
            raise StreamError(normalize_error(e, fallback=UNKNOWN_CHAT_ERROR)) from e

        reply = []
        try:
            for chunk in stream:
                if not chunk.choices:
                    continue
                text = chunk.choices[0].delta.content
                # chunks without text (role headers, finish markers) are skipped
                if not text:
                    continue
                reply.append(text)
                yield text
        except Exception as e:
            logger.error("stream from the openai api failed midway: %r", e)
            raise StreamError(normalize_error(e, fallback=UNKNOWN_CHAT_ERROR)) from e

        # only finished turns become part of the conversation
        self.messages.append({"role": "user", "content": enriched})
        self.messages.append({"role": "assistant", "content": "".join(reply)})


def create_session(bundle: ContextBundle, client: Optional[OpenAI] = None,
                   settings: Optional[Settings] = None) -> ChatSession:
    """
    opens a new session for the bundle
    builds the openai client from settings when none is passed in
    """
    settings = settings or get_settings()
    try:
        if client is None:
            client = OpenAI(api_key=require_api_key(settings))
        session = ChatSession(
            client,
            bundle,
            model=settings.openai_model,
            temperature=settings.temperature,
        )
    except Exception as e:
        logger.error("error initializing ai session: %r", e)
        raise ChatInitError(
            f"Error initializing AI session: {normalize_error(e, fallback=UNKNOWN_CHAT_ERROR)}"
        ) from e
    logger.info("chat session created with model=%s", settings.openai_model)
    return session
