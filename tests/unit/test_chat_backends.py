"""Unit tests for the chat backends against a local aiohttp server."""

import asyncio
import pytest
from aiohttp import test_utils, web

from clipster.errors import ChatError
from clipster.models.chat import Message
from clipster.providers.anthropic_backend import ANTHROPIC_VERSION, AnthropicBackend
from clipster.providers.openai_backend import OpenAICompatibleBackend
from clipster.providers.prompts import build_messages


def run_against(routes, call):
    """Start a local test server with the given (path, handler) routes and await call(base_url)."""
    async def _run():
        app = web.Application()
        for path, handler in routes:
            app.router.add_post(path, handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        try:
            return await call(str(server.make_url("")).rstrip("/"))
        finally:
            await server.close()

    return asyncio.run(_run())


class Recorder:
    """aiohttp handler that records requests and replies with a fixed response."""

    def __init__(self, body=None, status=200, text=None, delay=0.0):
        self.body = body
        self.status = status
        self.text = text
        self.delay = delay
        self.requests = []

    async def __call__(self, request):
        self.requests.append({'headers': request.headers.copy(), 'json': await request.json()})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.text is not None:
            return web.Response(text=self.text, status=self.status)
        return web.json_response(self.body, status=self.status)


MESSAGES = build_messages("list files by size", "be terse")


@pytest.mark.unit
class TestAnthropicBackend:
    """Test cases for AnthropicBackend."""

    def test_payload_lifts_system_prompt(self):
        backend = AnthropicBackend("key", temperature=0.8, max_tokens=500)

        payload = backend.build_payload(MESSAGES)

        assert payload['system'] == "be terse"
        assert payload['messages'] == [{'role': 'user', 'content': 'list files by size'}]
        assert payload['max_tokens'] == 500
        assert payload['temperature'] == 0.8
        assert payload['model'] == "claude-haiku-4-5-20251001"

    def test_temperature_clamped(self):
        assert AnthropicBackend("key", temperature=1.7).temperature == 1.0
        assert AnthropicBackend("key").with_temperature(-0.5).temperature == 0.0

    def test_chat_success(self):
        handler = Recorder({'content': [{'type': 'text', 'text': 'ls -lS'}]})

        async def call(base_url):
            return await AnthropicBackend("secret", base_url=base_url).chat(MESSAGES)

        assert run_against([("/v1/messages", handler)], call) == "ls -lS"

        request = handler.requests[0]
        assert request['headers']['x-api-key'] == "secret"
        assert request['headers']['anthropic-version'] == ANTHROPIC_VERSION
        assert request['json']['system'] == "be terse"

    def test_error_status(self):
        handler = Recorder({'error': {'message': 'invalid x-api-key'}}, status=401)

        async def call(base_url):
            return await AnthropicBackend("bad", base_url=base_url).chat(MESSAGES)

        with pytest.raises(ChatError) as exc_info:
            run_against([("/v1/messages", handler)], call)

        assert exc_info.value.status == 401
        assert "invalid x-api-key" in exc_info.value.body
        assert "401" in str(exc_info.value)

    def test_missing_content(self):
        handler = Recorder({'content': []})

        async def call(base_url):
            return await AnthropicBackend("key", base_url=base_url).chat(MESSAGES)

        with pytest.raises(ChatError, match="No response from Anthropic"):
            run_against([("/v1/messages", handler)], call)


@pytest.mark.unit
class TestOpenAICompatibleBackend:
    """Test cases for OpenAICompatibleBackend."""

    def test_openai_uses_max_completion_tokens(self):
        backend = OpenAICompatibleBackend("key", "gpt-5.1", max_tokens=500)

        payload = backend.build_payload(MESSAGES)

        assert payload['max_completion_tokens'] == 500
        assert 'max_tokens' not in payload
        assert payload['messages'][0] == {'role': 'system', 'content': 'be terse'}

    def test_xai_uses_max_tokens(self):
        backend = OpenAICompatibleBackend("key", "grok-4-latest", uses_completion_tokens=False,
                                          service_name="xAI", max_tokens=500)

        payload = backend.build_payload(MESSAGES)

        assert payload['max_tokens'] == 500
        assert 'max_completion_tokens' not in payload
        assert backend.service_name == "xAI"

    def test_chat_success(self):
        handler = Recorder({'choices': [{'message': {'role': 'assistant', 'content': 'du -sh *'}}]})

        async def call(base_url):
            backend = OpenAICompatibleBackend("secret", "gpt-5.1", base_url=f"{base_url}/v1")
            return await backend.chat(MESSAGES)

        assert run_against([("/v1/chat/completions", handler)], call) == "du -sh *"
        assert handler.requests[0]['headers']['Authorization'] == "Bearer secret"
        assert handler.requests[0]['json']['model'] == "gpt-5.1"

    def test_null_content(self):
        handler = Recorder({'choices': [{'message': {'role': 'assistant', 'content': None}}]})

        async def call(base_url):
            return await OpenAICompatibleBackend("key", "m", base_url=base_url).chat(MESSAGES)

        with pytest.raises(ChatError, match="No response"):
            run_against([("/chat/completions", handler)], call)

    def test_malformed_json(self):
        handler = Recorder(text="<html>bad gateway</html>")

        async def call(base_url):
            return await OpenAICompatibleBackend("key", "m", base_url=base_url).chat(MESSAGES)

        with pytest.raises(ChatError, match="malformed JSON"):
            run_against([("/chat/completions", handler)], call)

    @pytest.mark.slow
    def test_timeout(self):
        handler = Recorder({'choices': []}, delay=1.0)

        async def call(base_url):
            backend = OpenAICompatibleBackend("key", "m", base_url=base_url, timeout_seconds=0.2)
            return await backend.chat(MESSAGES)

        with pytest.raises(ChatError, match="timed out"):
            run_against([("/chat/completions", handler)], call)

    def test_connection_refused(self):
        backend = OpenAICompatibleBackend("key", "m", base_url="http://127.0.0.1:1", connect_timeout_seconds=1)

        with pytest.raises(ChatError, match="request failed"):
            asyncio.run(backend.chat(MESSAGES))


@pytest.mark.unit
class TestChatBackendBase:
    """Behaviour shared by every backend."""

    def test_requires_api_key(self):
        with pytest.raises(ValueError):
            AnthropicBackend("")

    def test_builder_methods(self):
        backend = OpenAICompatibleBackend("key", "a").with_model("b").with_max_tokens(42).with_temperature(0.1)

        assert backend.model == "b"
        assert backend.max_tokens == 42
        assert backend.temperature == 0.1

    def test_generate_sends_single_user_message(self):
        handler = Recorder({'choices': [{'message': {'content': 'ok'}}]})

        async def call(base_url):
            return await OpenAICompatibleBackend("key", "m", base_url=base_url).generate("hello")

        assert run_against([("/chat/completions", handler)], call) == "ok"
        assert handler.requests[0]['json']['messages'] == [Message("user", "hello").to_dict()]
