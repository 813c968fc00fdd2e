import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from mathchat.api.routes.solve import get_solver_service
from mathchat.core.config import Settings
from mathchat.main import app
from mathchat.services.gemini_service import GeminiSolverService


@pytest.fixture
def solution_payload() -> Dict[str, Any]:
    return {
        "problemSummary": "Solve the quadratic equation x^2 + 5x + 6 = 0.",
        "steps": [
            {
                "title": "Factor the quadratic",
                "description": "Find two numbers that multiply to 6 and add to 5.",
                "latex": "x^2 + 5x + 6 = (x + 2)(x + 3)",
            },
            {
                "title": "Apply the zero product property",
                "description": "A product is zero when one of its factors is zero.",
                "latex": "x + 2 = 0 \\quad \\text{or} \\quad x + 3 = 0",
            },
        ],
        "finalAnswer": "x = -2, x = -3",
        "conceptExplanation": "Zero product property of real numbers.",
        "relatedFormulas": ["x = \\frac{-b \\pm \\sqrt{b^2 - 4ac}}{2a}"],
    }


def gemini_reply(text: str) -> Dict[str, Any]:
    """generateContent response body carrying ``text`` as the model output"""
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": "STOP"}
        ]
    }


class UpstreamRecorder:
    """MockTransport handler that remembers what the proxy sent upstream"""

    def __init__(self, status_code: int = 200, body: Any = None, raw: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.raw = raw
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.raw is not None:
            return httpx.Response(self.status_code, text=self.raw)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def upstream_settings() -> Settings:
    return Settings(GEMINI_API_KEY="test-key", GEMINI_MODEL="gemini-test", GEMINI_THINKING_BUDGET=None)


@pytest.fixture
def make_service(upstream_settings) -> Callable[..., GeminiSolverService]:
    def _make(handler: Callable, config: Optional[Settings] = None) -> GeminiSolverService:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return GeminiSolverService(config=config or upstream_settings, client=client)
    return _make


@pytest.fixture
def override_upstream(make_service):
    """Point the proxy route at a stubbed model provider"""
    def _override(handler: Callable, config: Optional[Settings] = None) -> None:
        app.dependency_overrides[get_solver_service] = lambda: make_service(handler, config)

    yield _override
    app.dependency_overrides.clear()


@pytest.fixture
def api_client() -> TestClient:
    with TestClient(app) as client:
        yield client
