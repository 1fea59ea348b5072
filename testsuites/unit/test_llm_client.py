import json

import httpx
import pytest

from e2e_toolkit.common import ConfigurationError, Settings
from e2e_toolkit.llm import DEFAULT_CAPTCHA_PROMPT, LLMClient


OPENAI_URL = "http://llm.test/v1/chat/completions"
LOCAL_URL = "http://llm.test/api/generate"


def _client(handler, requests):
    def recording_handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))


async def test_openai_captcha_request_and_answer():
    requests = []
    settings = Settings(llm_provider="openai", llm_endpoint=OPENAI_URL, llm_api_key="sk-test", openai_model="gpt-4o-mini")
    reply = {"choices": [{"message": {"content": "  X7k2 \n"}}]}

    async with _client(lambda r: httpx.Response(200, json=reply), requests) as http:
        llm = LLMClient(settings, http_client=http)
        result = await llm.solve_captcha("aW1hZ2U=")

    assert result.success
    assert result.data == "X7k2"
    request = requests[0]
    assert str(request.url) == OPENAI_URL
    assert request.headers["Authorization"] == "Bearer sk-test"
    payload = json.loads(request.content)
    assert payload["model"] == "gpt-4o-mini"
    content = payload["messages"][0]["content"]
    assert content[0] == {"type": "text", "text": DEFAULT_CAPTCHA_PROMPT}
    assert content[1]["image_url"]["url"] == "data:image/png;base64,aW1hZ2U="


async def test_openai_question_with_system_prompt():
    requests = []
    settings = Settings(llm_provider="openai", llm_endpoint=OPENAI_URL)
    reply = {"choices": [{"message": {"content": "Paris"}}]}

    async with _client(lambda r: httpx.Response(200, json=reply), requests) as http:
        result = await LLMClient(settings, http_client=http).question_answer("Capital of France?", "Be brief")

    assert result.data == "Paris"
    assert "Authorization" not in requests[0].headers
    messages = json.loads(requests[0].content)["messages"]
    assert messages == [
        {"role": "system", "content": "Be brief"},
        {"role": "user", "content": "Capital of France?"},
    ]


async def test_openai_without_choices_is_unsuccessful():
    settings = Settings(llm_provider="openai", llm_endpoint=OPENAI_URL)

    async with _client(lambda r: httpx.Response(200, json={"choices": []}), []) as http:
        result = await LLMClient(settings, http_client=http).solve_captcha("aW1hZ2U=")

    assert not result.success
    assert "No response choices" in result.error


async def test_local_provider_sends_images_and_reads_response():
    requests = []
    settings = Settings(llm_provider="local", llm_endpoint=LOCAL_URL, local_llm_model="llava")

    async with _client(lambda r: httpx.Response(200, json={"response": " ab12 "}), requests) as http:
        result = await LLMClient(settings, http_client=http).solve_captcha("aW1hZ2U=", instructions="Digits only")

    assert result.success and result.data == "ab12"
    payload = json.loads(requests[0].content)
    assert payload == {"model": "llava", "prompt": "Digits only", "images": ["aW1hZ2U="], "stream": False}


async def test_http_error_is_returned_not_raised():
    settings = Settings(llm_provider="local", llm_endpoint=LOCAL_URL)

    async with _client(lambda r: httpx.Response(500, text="boom"), []) as http:
        result = await LLMClient(settings, http_client=http).question_answer("hi")

    assert not result.success
    assert "500" in result.error


async def test_unsupported_provider_is_unsuccessful():
    requests = []
    settings = Settings(llm_provider="acme", llm_endpoint=LOCAL_URL)

    async with _client(lambda r: httpx.Response(200, json={}), requests) as http:
        result = await LLMClient(settings, http_client=http).solve_captcha("aW1hZ2U=")

    assert not result.success
    assert 'Provider "acme" not supported' in result.error
    assert requests == []


def test_missing_endpoint_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        LLMClient(Settings(llm_endpoint=None))


async def test_owned_client_is_closed_on_exit():
    async with LLMClient(Settings(llm_endpoint=LOCAL_URL)) as llm:
        pass

    assert llm._client.is_closed
