import json

import httpx
import pytest

from todo_ai.errors import ConfigurationError, ExternalCallFailure, QuotaExceeded
from todo_ai.llm import GeminiGenerator
from todo_ai.settings import get_settings

SCHEMA = {"type": "OBJECT", "properties": {"title": {"type": "STRING"}}}


def candidate(text):
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


@pytest.fixture
def settings(monkeypatch):
    monkeypatch.setenv("GOOGLE_GENERATIVE_AI_API_KEY", "test-key")
    monkeypatch.setenv("GEMINI_MODEL", "gemini-test")
    monkeypatch.setenv("GEMINI_BASE_URL", "https://llm.example/v1beta/")
    return get_settings()


def generator_for(settings, handler):
    return GeminiGenerator(settings, transport=httpx.MockTransport(handler))


class TestGeminiGenerator:
    def test_request_shape_and_parsed_output(self, settings):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=candidate('{"title": "회의 준비"}'))

        result = generator_for(settings, handler).generate("프롬프트", SCHEMA)

        assert result == {"title": "회의 준비"}
        assert seen["url"] == "https://llm.example/v1beta/models/gemini-test:generateContent"
        assert seen["key"] == "test-key"
        assert seen["body"]["contents"][0]["parts"][0]["text"] == "프롬프트"
        assert seen["body"]["generationConfig"] == {
            "responseMimeType": "application/json",
            "responseSchema": SCHEMA,
        }

    def test_missing_key_raises_before_any_request(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_GENERATIVE_AI_API_KEY", raising=False)

        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(ConfigurationError):
            generator_for(get_settings(), handler).generate("p", SCHEMA)

    def test_429_is_quota(self, settings):
        gen = generator_for(settings, lambda r: httpx.Response(429, json={"error": "RESOURCE_EXHAUSTED"}))
        with pytest.raises(QuotaExceeded):
            gen.generate("p", SCHEMA)

    def test_server_error_carries_status_and_body(self, settings):
        gen = generator_for(settings, lambda r: httpx.Response(500, text="backend down"))
        with pytest.raises(ExternalCallFailure) as exc_info:
            gen.generate("p", SCHEMA)
        assert exc_info.value.details == "500: backend down"

    def test_transport_error(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ExternalCallFailure) as exc_info:
            generator_for(settings, handler).generate("p", SCHEMA)
        assert "connection refused" in exc_info.value.details

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="not json"),
            httpx.Response(200, json={"candidates": []}),
            httpx.Response(200, json=candidate("not json either")),
            httpx.Response(200, json=candidate('["a", "list"]')),
        ],
    )
    def test_unusable_responses(self, settings, response):
        gen = generator_for(settings, lambda r: response)
        with pytest.raises(ExternalCallFailure):
            gen.generate("p", SCHEMA)

    def test_text_split_across_parts(self, settings):
        body = {"candidates": [{"content": {"parts": [{"text": '{"title": '}, {"text": '"x"}'}]}}]}
        gen = generator_for(settings, lambda r: httpx.Response(200, json=body))
        assert gen.generate("p", SCHEMA) == {"title": "x"}
