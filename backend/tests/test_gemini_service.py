import json

import httpx
import pytest

from mathchat.core.config import Settings
from mathchat.core.exceptions import ApiKeyNotConfiguredError, SolutionParseError, UpstreamError
from mathchat.services.gemini_service import SOLUTION_SCHEMA, SYSTEM_INSTRUCTION, GeminiSolverService

from conftest import UpstreamRecorder, gemini_reply


async def test_solve_returns_model_json_verbatim(make_service, solution_payload):
    upstream = UpstreamRecorder(body=gemini_reply(json.dumps(solution_payload)))
    service = make_service(upstream)

    result = await service.solve("x^2 + 5x + 6 = 0")

    assert result == solution_payload
    request = upstream.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-test:generateContent"
    assert request.url.params["key"] == "test-key"


async def test_request_carries_prompt_instruction_and_schema(make_service, solution_payload):
    upstream = UpstreamRecorder(body=gemini_reply(json.dumps(solution_payload)))
    service = make_service(upstream)

    await service.solve("integrate x dx")

    sent = upstream.last_json
    assert sent["contents"] == [{"parts": [{"text": "integrate x dx"}]}]
    assert sent["systemInstruction"] == {"parts": [{"text": SYSTEM_INSTRUCTION}]}
    assert sent["generationConfig"]["responseMimeType"] == "application/json"
    assert sent["generationConfig"]["responseSchema"] == SOLUTION_SCHEMA
    assert "thinkingConfig" not in sent["generationConfig"]


async def test_image_part_precedes_text_and_prefix_is_stripped(make_service, solution_payload):
    upstream = UpstreamRecorder(body=gemini_reply(json.dumps(solution_payload)))
    service = make_service(upstream)

    await service.solve("what is shown?", "data:image/png;base64,iVBORw0KGgo=")

    parts = upstream.last_json["contents"][0]["parts"]
    assert parts[0] == {"inlineData": {"mimeType": "image/png", "data": "iVBORw0KGgo="}}
    assert parts[1] == {"text": "what is shown?"}


def test_raw_base64_image_defaults_to_jpeg():
    service = GeminiSolverService(config=Settings(GEMINI_API_KEY="k"))

    parts = service.build_parts("p", "/9j/4AAQSkZJRg==")

    assert parts[0] == {"inlineData": {"mimeType": "image/jpeg", "data": "/9j/4AAQSkZJRg=="}}


def test_thinking_budget_is_forwarded_when_configured():
    service = GeminiSolverService(config=Settings(GEMINI_API_KEY="k", GEMINI_THINKING_BUDGET=16000))

    body = service.build_request("p")

    assert body["generationConfig"]["thinkingConfig"] == {"thinkingBudget": 16000}


def test_schema_requires_every_step_field():
    step_schema = SOLUTION_SCHEMA["properties"]["steps"]["items"]

    assert step_schema["required"] == ["title", "description", "latex"]
    assert set(SOLUTION_SCHEMA["required"]) == {
        "problemSummary", "steps", "finalAnswer", "conceptExplanation", "relatedFormulas",
    }


async def test_missing_key_never_calls_upstream(make_service):
    upstream = UpstreamRecorder(body=gemini_reply("{}"))
    service = make_service(upstream, Settings(GEMINI_API_KEY=""))

    with pytest.raises(ApiKeyNotConfiguredError):
        await service.solve("1 + 1")

    assert upstream.requests == []


async def test_non_success_status_keeps_body_out_of_message(make_service):
    upstream = UpstreamRecorder(status_code=429, raw='{"error": {"message": "quota exhausted for key"}}')
    service = make_service(upstream)

    with pytest.raises(UpstreamError) as exc_info:
        await service.solve("1 + 1")

    assert exc_info.value.message == "Failed to process math problem"
    assert exc_info.value.upstream_status == 429
    assert "quota exhausted" in exc_info.value.detail
    assert "quota" not in exc_info.value.message


async def test_transport_error_becomes_upstream_error(make_service):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    service = make_service(refuse)

    with pytest.raises(UpstreamError):
        await service.solve("1 + 1")


async def test_wrapped_model_output_is_cleaned(make_service):
    upstream = UpstreamRecorder(body=gemini_reply('Sure! {"problemSummary":"x","steps":[]} Thanks'))
    service = make_service(upstream)

    result = await service.solve("anything")

    assert result == {"problemSummary": "x", "steps": []}


async def test_missing_candidate_text_yields_empty_object(make_service):
    service = make_service(UpstreamRecorder(body={"candidates": []}))

    assert await service.solve("anything") == {}


async def test_unparseable_model_output_is_a_parse_error(make_service):
    service = make_service(UpstreamRecorder(body=gemini_reply("no json at all")))

    with pytest.raises(SolutionParseError):
        await service.solve("anything")
