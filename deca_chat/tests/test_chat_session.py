import threading
import time

import pytest

from deca_chat.domain.exceptions import ApiError, CompletionError, ConfigError, NetworkError
from deca_chat.domain.models import ChatChoice, ChatMessage, ChatResult
from deca_chat.session import ChatSession, SessionConfig


class FakeProvider:
    name = "fake"

    def __init__(self, replies=None, error=None):
        self._replies = list(replies or ["done"])
        self._error = error
        self.requests = []

    def complete(self, req):
        self.requests.append(req)
        if self._error is not None:
            raise self._error
        text = self._replies.pop(0) if self._replies else "done"
        msg = ChatMessage(role="assistant", content=text)
        return ChatResult(model=req.model, choices=[ChatChoice(index=0, message=msg)], raw={})


class EmptyProvider:
    name = "empty"

    def complete(self, req):
        return ChatResult(model=req.model, choices=[], raw={})


def _session(provider=None, **options):
    return ChatSession.create(api_key="k", provider=provider or FakeProvider(), **options)


def test_defaults_applied():
    session = _session()
    assert session.config.model == "gpt-4o-mini"
    assert session.config.base_url == "https://api.openai.com/v1"
    assert session.config.max_tokens == 1000
    assert session.config.temperature == 0.7
    assert session.get_conversation() == []
    assert session.intro_pending is False


def test_system_message_resets_history():
    session = _session()
    session.send_message("a")
    session.send_message("b")
    session.set_system_message("Be terse.")
    assert session.get_conversation() == [ChatMessage(role="system", content="Be terse.")]


def test_intro_is_deferred_until_first_send():
    provider = FakeProvider(replies=["reply"])
    session = _session(provider, intro="hi")
    assert session.intro_pending is True
    assert session.get_conversation() == []

    assert session.send_message("hello") == "reply"
    assert session.intro_pending is False
    assert session.get_conversation() == [
        ChatMessage(role="assistant", content="hi"),
        ChatMessage(role="user", content="hello"),
        ChatMessage(role="assistant", content="reply"),
    ]
    # 请求里已经带上开场白
    assert [m.role for m in provider.requests[0].messages] == ["assistant", "user"]


def test_failed_send_keeps_user_turn():
    cause = NetworkError(code="NETWORK_ERROR", message="connection refused")
    session = _session(FakeProvider(error=cause), system_message="sys")
    before = session.get_conversation()

    with pytest.raises(CompletionError) as exc_info:
        session.send_message("m")

    assert exc_info.value.cause is cause
    assert exc_info.value.__cause__ is cause
    assert session.get_conversation() == before + [ChatMessage(role="user", content="m")]


def test_session_usable_after_failure():
    provider = FakeProvider(error=ApiError(code="API_ERROR", message="boom", http_status=500))
    session = _session(provider)
    with pytest.raises(CompletionError) as exc_info:
        session.send_message("first")
    assert exc_info.value.http_status == 500

    provider._error = None
    assert session.send_message("second") == "done"
    assert [m.content for m in session.get_conversation()] == ["first", "second", "done"]


def test_unexpected_provider_exception_is_wrapped():
    session = _session(FakeProvider(error=RuntimeError("weird")))
    with pytest.raises(CompletionError) as exc_info:
        session.send_message("x")
    assert isinstance(exc_info.value.cause, RuntimeError)
    assert "weird" in exc_info.value.message


def test_get_conversation_returns_copy():
    session = _session()
    session.send_message("hello")
    snapshot = session.get_conversation()
    snapshot.append(ChatMessage(role="user", content="injected"))
    snapshot.clear()
    assert len(session.get_conversation()) == 2
    assert len(session) == 2


def test_clear_does_not_replay_intro():
    provider = FakeProvider(replies=["r1", "r2"])
    session = _session(provider, intro="Hi!")
    session.send_message("one")
    session.clear_conversation()
    assert session.get_conversation() == []
    assert session.intro_pending is False

    session.send_message("two")
    assert session.get_conversation() == [
        ChatMessage(role="user", content="two"),
        ChatMessage(role="assistant", content="r2"),
    ]


def test_set_intro_on_empty_history_marks_pending():
    session = _session()
    session.set_intro("welcome")
    assert session.intro_pending is True
    session.send_message("q")
    assert session.get_conversation()[0] == ChatMessage(role="assistant", content="welcome")


def test_set_intro_with_existing_turns_only_stores_text():
    session = _session()
    session.send_message("q")
    session.set_intro("late")
    assert session.intro_pending is False
    assert session.intro_text == "late"
    session.send_message("again")
    assert all(m.content != "late" for m in session.get_conversation())


def test_empty_choices_yield_empty_reply():
    session = _session(EmptyProvider())
    assert session.send_message("hello") == ""
    assert session.get_conversation()[-1] == ChatMessage(role="assistant", content="")


def test_request_carries_config():
    provider = FakeProvider()
    session = _session(provider, model="m-1", max_tokens=42, temperature=0.1)
    session.send_message("x")
    req = provider.requests[0]
    assert req.model == "m-1"
    assert req.max_tokens == 42
    assert req.temperature == 0.1
    assert req.messages == (ChatMessage(role="user", content="x"),)


@pytest.mark.parametrize(
    "options",
    [
        {"api_key": "k", "temperature": 1.5},
        {"api_key": "k", "max_tokens": 0},
        {"api_key": ""},
        {"api_key": "   "},
    ],
)
def test_invalid_config_raises(options):
    with pytest.raises(ConfigError):
        ChatSession.create(provider=FakeProvider(), **options)


def test_unknown_option_raises_config_error():
    with pytest.raises(ConfigError):
        ChatSession.create(api_key="k", provider=FakeProvider(), colour="blue")


def test_non_config_object_rejected():
    with pytest.raises(ConfigError):
        ChatSession({"api_key": "k"}, provider=FakeProvider())


def test_end_to_end_with_system_and_intro():
    provider = FakeProvider(replies=["4"])
    session = ChatSession(
        SessionConfig(api_key="k", system_message="Be terse.", intro="Hi!"),
        provider=provider,
    )
    assert session.get_conversation() == [ChatMessage(role="system", content="Be terse.")]
    assert session.intro_pending is True

    assert session.send_message("2+2?") == "4"
    assert session.get_conversation() == [
        ChatMessage(role="system", content="Be terse."),
        ChatMessage(role="assistant", content="Hi!"),
        ChatMessage(role="user", content="2+2?"),
        ChatMessage(role="assistant", content="4"),
    ]


def test_concurrent_sends_are_serialized():
    started = threading.Event()
    release = threading.Event()

    class SlowProvider:
        name = "slow"

        def __init__(self):
            self.calls = 0
            self.requests = []

        def complete(self, req):
            self.calls += 1
            self.requests.append(req)
            if self.calls == 1:
                started.set()
                release.wait(timeout=5)
            last = req.messages[-1].content
            return ChatResult(
                model=req.model,
                choices=[ChatChoice(index=0, message=ChatMessage(role="assistant", content=f"re:{last}"))],
            )

    provider = SlowProvider()
    session = _session(provider)
    t = threading.Thread(target=session.send_message, args=("a",))
    t.start()
    assert started.wait(timeout=5)

    second_started = threading.Event()

    def send_second():
        second_started.set()
        session.send_message("b")

    t2 = threading.Thread(target=send_second)
    t2.start()
    assert second_started.wait(timeout=5)
    # 给第二个线程时间走到锁上
    time.sleep(0.1)
    assert session._lock.locked()
    assert len(session) == 1
    release.set()
    t.join(timeout=5)
    t2.join(timeout=5)

    assert [m.content for m in session.get_conversation()] == ["a", "re:a", "b", "re:b"]
    # 第二个请求看到的是第一轮完整的历史
    assert [m.content for m in provider.requests[1].messages] == ["a", "re:a", "b"]


def test_set_intro_after_system_message_is_pending():
    provider = FakeProvider(replies=["reply"])
    session = _session(provider)
    session.set_system_message("sys")
    session.set_intro("hi")
    assert session.intro_pending is True
    assert session.get_conversation() == [ChatMessage(role="system", content="sys")]

    session.send_message("hello")
    assert [m.role for m in session.get_conversation()] == ["system", "assistant", "user", "assistant"]
    assert session.get_conversation()[1] == ChatMessage(role="assistant", content="hi")


def test_clear_waits_for_send_in_flight():
    started = threading.Event()
    release = threading.Event()

    class BlockingProvider:
        name = "blocking"

        def complete(self, req):
            started.set()
            release.wait(timeout=5)
            return ChatResult(
                model=req.model,
                choices=[ChatChoice(index=0, message=ChatMessage(role="assistant", content="r"))],
            )

    session = _session(BlockingProvider())
    t = threading.Thread(target=session.send_message, args=("q",))
    t.start()
    assert started.wait(timeout=5)

    cleared = threading.Event()

    def clear():
        session.clear_conversation()
        cleared.set()

    t2 = threading.Thread(target=clear)
    t2.start()
    # 发送未完成前清空会被阻塞
    assert not cleared.wait(timeout=0.1)
    release.set()
    t.join(timeout=5)
    t2.join(timeout=5)

    assert cleared.is_set()
    assert session.get_conversation() == []


def test_create_ignores_broken_settings(monkeypatch):
    monkeypatch.setattr("deca_chat.config.settings._settings", None)
    monkeypatch.setenv("DECA_CHAT_TEMPERATURE", "hot")
    session = ChatSession.create(api_key="k", provider=FakeProvider())
    assert session.send_message("hi") == "done"
    assert session.config.temperature == 0.7


def test_from_settings_reports_broken_settings(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("deca_chat.config.settings._settings", None)
    monkeypatch.setenv("DECA_CHAT_TEMPERATURE", "hot")
    with pytest.raises(ConfigError):
        ChatSession.from_settings(provider=FakeProvider())
