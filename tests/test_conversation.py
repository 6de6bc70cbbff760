from unittest.mock import MagicMock

import pytest

from chat_session import ChatSession
from conversation import ASSISTANT, USER, ChatHistory, ChatMessage, PortfolioChat, reduce_stream
from errors import ChatInitError, GENERIC_CONTEXT_ERROR
from prompts import CONTEXT_NOT_LOADED, CONTEXT_READY, EMPTY_RESUME, GREETING
from resume_manager import NO_RESUME_MESSAGE, ContextBundle

from conftest import make_chunk, make_stream_client


@pytest.mark.parametrize("fragments", [
    ["Hel", "lo, ", "world"],
    ["Hello, world"],
    ["H", "", "ello, wor", "ld"],
])
def test_reduce_stream_is_order_preserving(fragments):
    updates = []
    assert reduce_stream(fragments, updates.append) == "Hello, world"
    assert updates[-1] == "Hello, world"
    # content only grows during a turn
    assert all(b.startswith(a) for a, b in zip(updates, updates[1:]))


def test_chat_message_role_is_closed():
    with pytest.raises(ValueError):
        ChatMessage("system", "hi")


def test_history_tail_is_only_editable_while_turn_is_open():
    history = ChatHistory()
    history.begin_turn("question")
    history.update_tail("partial")
    history.finalize()
    assert history.snapshot() == (ChatMessage(USER, "question"), ChatMessage(ASSISTANT, "partial"))
    with pytest.raises(RuntimeError):
        history.update_tail("rewrite")


def test_history_rejects_second_open_turn():
    history = ChatHistory()
    history.begin_turn("one")
    with pytest.raises(RuntimeError):
        history.begin_turn("two")


def test_history_subscribers_get_snapshots():
    history = ChatHistory()
    seen = []
    unsubscribe = history.subscribe(seen.append)
    history.append(ChatMessage(ASSISTANT, "hi"))
    unsubscribe()
    history.append(ChatMessage(ASSISTANT, "again"))
    assert seen == [(ChatMessage(ASSISTANT, "hi"),)]


def session_factory(client):
    return lambda bundle: ChatSession(client, bundle)


def test_initial_transcript_is_greeting(manager):
    chat = PortfolioChat(manager)
    assert chat.history.snapshot() == (ChatMessage(ASSISTANT, GREETING),)


def test_load_context_success(manager):
    client = make_stream_client("hi")
    chat = PortfolioChat(manager, session_factory(client))
    seen = []
    chat.subscribe(seen.append)

    bundle = chat.load_context()

    assert isinstance(bundle, ContextBundle)
    assert chat.session is not None
    assert chat.session.bundle == bundle
    assert chat.history.snapshot() == (ChatMessage(ASSISTANT, CONTEXT_READY),)
    # the loading message was shown first
    assert seen[0][0].content.startswith("Fetching")
    assert not chat.is_loading_context


def test_load_context_without_resume(manager, fake_store):
    fake_store.record = None
    chat = PortfolioChat(manager, session_factory(MagicMock()))
    chat.load_context()
    assert chat.session is None
    assert chat.error is None
    assert chat.history.snapshot() == (ChatMessage(ASSISTANT, NO_RESUME_MESSAGE),)


def test_load_context_fetch_error(manager, fake_store):
    fake_store.download_error = PermissionError()
    chat = PortfolioChat(manager, session_factory(MagicMock()))
    assert chat.load_context() is None
    assert chat.error == GENERIC_CONTEXT_ERROR
    assert chat.history.snapshot() == (ChatMessage(ASSISTANT, f"Error: {GENERIC_CONTEXT_ERROR}"),)


def test_empty_resume_text_skips_session(manager, fake_store):
    fake_store.files["resume_1.txt"] = b"   "
    manager.processor.extractors["plaintext"] = lambda data: ""
    factory = MagicMock()
    chat = PortfolioChat(manager, factory)

    outcome = chat.load_context()

    assert outcome.resume_text == ""
    factory.assert_not_called()
    assert chat.session is None
    assert chat.error is None
    assert chat.history.snapshot() == (ChatMessage(ASSISTANT, EMPTY_RESUME),)


def test_session_init_error_is_shown(manager):
    def factory(bundle):
        raise ChatInitError("Error initializing AI session: bad key")

    chat = PortfolioChat(manager, factory)
    chat.load_context()
    assert chat.session is None
    assert chat.error == "Error initializing AI session: bad key"


def test_send_without_session_skips_network(manager):
    chat = PortfolioChat(manager)
    assert chat.send_message("Who are you?")
    assert chat.history.snapshot()[-2:] == (
        ChatMessage(USER, "Who are you?"),
        ChatMessage(ASSISTANT, CONTEXT_NOT_LOADED),
    )
    assert not chat.is_thinking


def test_send_streams_into_placeholder(manager):
    client = make_stream_client("I am ", "Jane.")
    chat = PortfolioChat(manager, session_factory(client))
    chat.load_context()
    tails = []
    chat.subscribe(lambda snapshot: tails.append(snapshot[-1]))

    assert chat.send_message("  Who are you?  ")

    assert tails[0] == ChatMessage(ASSISTANT, "")
    assert [t.content for t in tails[1:]] == ["I am ", "I am Jane."]
    assert chat.history.snapshot()[-2:] == (
        ChatMessage(USER, "Who are you?"),
        ChatMessage(ASSISTANT, "I am Jane."),
    )
    assert not chat.history.turn_open


def test_stream_failure_is_rewritten_into_the_reply(manager):
    client = MagicMock()
    client.chat.completions.create.side_effect = RuntimeError("rate limited")
    chat = PortfolioChat(manager, session_factory(client))
    chat.load_context()

    assert chat.send_message("Hi")

    assert chat.history.snapshot()[-1] == ChatMessage(
        ASSISTANT, "Sorry, I encountered an error. rate limited"
    )
    assert chat.error == "Error: rate limited"
    assert not chat.is_thinking

    # the session survives and the next send works
    client.chat.completions.create.side_effect = None
    client.chat.completions.create.return_value = iter([])
    assert chat.send_message("Again")


def test_blank_and_concurrent_sends_are_rejected(manager):
    chat = PortfolioChat(manager)
    assert not chat.send_message("   ")
    chat.is_thinking = True
    before = chat.history.snapshot()
    assert not chat.send_message("Hi")
    assert chat.history.snapshot() == before


def test_midstream_failure_is_rewritten_into_the_reply(manager):
    def dropping_stream(**kwargs):
        yield make_chunk("I am ")
        raise RuntimeError("connection dropped")

    client = MagicMock()
    client.chat.completions.create.side_effect = dropping_stream
    chat = PortfolioChat(manager, session_factory(client))
    chat.load_context()

    assert chat.send_message("Who are you?")

    assert chat.history.snapshot()[-1] == ChatMessage(
        ASSISTANT, "Sorry, I encountered an error. connection dropped"
    )
    assert len(chat.session.messages) == 3
    assert not chat.is_thinking
    assert not chat.history.turn_open
