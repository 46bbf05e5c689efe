from __future__ import annotations

import sys
import types

import pytest

from complimentary.errors import EmptyResponseError, TransportError
from complimentary.generator import GeminiGenerator, OpenAIGenerator, resolve_api_key
from complimentary.models import GenerationRequest


@pytest.fixture
def request_model() -> GenerationRequest:
    return GenerationRequest(
        system_instructions="system prompt",
        user_instructions="user prompt",
        temperature=0.7,
        max_output_tokens=500,
    )


def _install_fake_genai(monkeypatch: pytest.MonkeyPatch, captured: dict[str, object], text: object) -> None:
    class FakeGenerateContentConfig:
        def __init__(self, **kwargs: object) -> None:
            self.kwargs = kwargs

    class FakeModels:
        def generate_content(self, **kwargs: object):
            captured["request"] = kwargs
            if isinstance(text, Exception):
                raise text
            return types.SimpleNamespace(text=text)

    class FakeClient:
        def __init__(self, api_key: str) -> None:
            captured["api_key"] = api_key
            self.models = FakeModels()

    fake_google_genai = types.ModuleType("google.genai")
    fake_google_genai.Client = FakeClient
    fake_google_genai.types = types.SimpleNamespace(GenerateContentConfig=FakeGenerateContentConfig)

    fake_google = types.ModuleType("google")
    fake_google.genai = fake_google_genai

    monkeypatch.setitem(sys.modules, "google", fake_google)
    monkeypatch.setitem(sys.modules, "google.genai", fake_google_genai)


class FakeOpenAIError(Exception):
    pass


def _install_fake_openai(monkeypatch: pytest.MonkeyPatch, captured: dict[str, object], content) -> None:
    class FakeCompletions:
        def create(self, **kwargs: object):
            captured["request"] = kwargs
            if isinstance(content, Exception):
                raise content
            message = types.SimpleNamespace(content=content)
            return types.SimpleNamespace(choices=[types.SimpleNamespace(message=message)], usage=None)

    class FakeOpenAI:
        def __init__(self, api_key: str) -> None:
            captured["api_key"] = api_key
            self.chat = types.SimpleNamespace(completions=FakeCompletions())

    fake_openai = types.ModuleType("openai")
    fake_openai.OpenAI = FakeOpenAI
    fake_openai.OpenAIError = FakeOpenAIError
    monkeypatch.setitem(sys.modules, "openai", fake_openai)


def test_resolve_api_key_given_env_and_file_when_resolved_then_env_wins(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path,
) -> None:
    # Given
    key_file = tmp_path / "Gemini.md"
    key_file.write_text("file-key", encoding="utf-8")
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")

    # When
    value = resolve_api_key("GEMINI_API_KEY", key_file=key_file)

    # Then
    assert value == "env-key"


def test_resolve_api_key_given_only_file_when_resolved_then_file_value_is_used(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path,
) -> None:
    # Given
    key_file = tmp_path / "OpenAI.md"
    key_file.write_text("file-key\n", encoding="utf-8")
    monkeypatch.setenv("OPENAI_API_KEY", "   ")

    # When
    value = resolve_api_key("OPENAI_API_KEY", key_file=key_file)

    # Then
    assert value == "file-key"


def test_resolve_api_key_given_no_sources_when_resolved_then_none_is_returned(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path,
) -> None:
    # Given
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    missing_file = tmp_path / "missing.md"

    # When
    value = resolve_api_key("GEMINI_API_KEY", key_file=missing_file)

    # Then
    assert value is None


def test_gemini_generator_given_mocked_sdk_when_generated_then_request_fields_are_forwarded(
    monkeypatch: pytest.MonkeyPatch,
    request_model,
) -> None:
    # Given
    captured: dict[str, object] = {}
    _install_fake_genai(monkeypatch, captured, "  mocked-response  ")
    generator = GeminiGenerator(model_name="gemini-test", api_key="fake-key")

    # When
    result = generator.generate(request_model)

    # Then
    assert result == "mocked-response"
    assert captured["api_key"] == "fake-key"
    request = captured["request"]
    assert isinstance(request, dict)
    assert request["model"] == "gemini-test"
    assert request["contents"] == "user prompt"
    config = request["config"].kwargs
    assert config["system_instruction"] == "system prompt"
    assert config["temperature"] == 0.7
    assert config["max_output_tokens"] == 500


def test_gemini_generator_given_missing_key_when_generated_then_transport_error_is_raised(request_model) -> None:
    # Given
    generator = GeminiGenerator(model_name="gemini-test", api_key=None)

    # When
    with pytest.raises(TransportError, match="Missing GEMINI_API_KEY"):
        generator.generate(request_model)

    # Then
    # TransportError is absorbed by the pipeline's fallback.


def test_gemini_generator_given_blank_response_when_generated_then_empty_response_error_is_raised(
    monkeypatch: pytest.MonkeyPatch,
    request_model,
) -> None:
    # Given
    _install_fake_genai(monkeypatch, {}, "   ")
    generator = GeminiGenerator(model_name="gemini-test", api_key="fake-key")

    # When
    with pytest.raises(EmptyResponseError):
        generator.generate(request_model)

    # Then
    # EmptyResponseError is a TransportError subtype.


def test_gemini_generator_given_sdk_failure_when_generated_then_error_is_wrapped(
    monkeypatch: pytest.MonkeyPatch,
    request_model,
) -> None:
    # Given
    _install_fake_genai(monkeypatch, {}, ConnectionError("network down"))
    generator = GeminiGenerator(model_name="gemini-test", api_key="fake-key")

    # When
    with pytest.raises(TransportError) as excinfo:
        generator.generate(request_model)

    # Then
    assert isinstance(excinfo.value.__cause__, ConnectionError)


def test_openai_generator_given_mocked_sdk_when_generated_then_two_messages_are_sent(
    monkeypatch: pytest.MonkeyPatch,
    request_model,
) -> None:
    # Given
    captured: dict[str, object] = {}
    _install_fake_openai(monkeypatch, captured, '{"compliment": "hi"}')
    generator = OpenAIGenerator(model_name="gpt-test", api_key="fake-key")

    # When
    result = generator.generate(request_model)

    # Then
    assert result == '{"compliment": "hi"}'
    request = captured["request"]
    assert isinstance(request, dict)
    assert request["model"] == "gpt-test"
    assert request["messages"] == [
        {"role": "system", "content": "system prompt"},
        {"role": "user", "content": "user prompt"},
    ]
    assert request["temperature"] == 0.7
    assert request["max_tokens"] == 500


def test_openai_generator_given_none_content_when_generated_then_empty_response_error_is_raised(
    monkeypatch: pytest.MonkeyPatch,
    request_model,
) -> None:
    # Given
    _install_fake_openai(monkeypatch, {}, None)
    generator = OpenAIGenerator(model_name="gpt-test", api_key="fake-key")

    # When
    with pytest.raises(EmptyResponseError):
        generator.generate(request_model)

    # Then
    # No content is reported distinctly from connection failures.


def test_openai_generator_given_sdk_error_when_generated_then_transport_error_is_raised(
    monkeypatch: pytest.MonkeyPatch,
    request_model,
) -> None:
    # Given
    _install_fake_openai(monkeypatch, {}, FakeOpenAIError("HTTP 500"))
    generator = OpenAIGenerator(model_name="gpt-test", api_key="fake-key")

    # When
    with pytest.raises(TransportError, match="HTTP 500"):
        generator.generate(request_model)

    # Then
    # SDK errors never escape the transport.
