import logging
from typing import Any, Dict, List, Optional

import httpx

from mathchat.core.config import Settings, settings as default_settings
from mathchat.core.exceptions import ApiKeyNotConfiguredError, SolutionParseError, UpstreamError
from mathchat.services.images import DEFAULT_IMAGE_MIME, split_data_uri
from mathchat.services.solution_parser import extract_json_payload

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = """You are SceraMath, a premium mathematical reasoning engine.
Your goal is to provide clear, textbook-quality solutions that are easy to understand.

OUTPUT GUIDELINES:
1. PROBLEM SUMMARY: Restate the problem clearly in one sentence.
2. STEP-BY-STEP DERIVATION:
   - Break the logic into small, digestible steps.
   - Use 'title' for the action being taken.
   - Use 'description' to explain the mathematical intuition.
   - Use 'latex' for the formal mathematical expression.
3. FINAL ANSWER: Provide the definitive result clearly.
4. CONCEPT EXPLANATION: Briefly explain the underlying theorem or property used.

MATHEMATICAL NOTATION RULES:
- Use standard LaTeX for formulas (e.g., \\frac{a}{b}, x^2, \\sqrt{y}).
- In the JSON response, escape backslashes once (e.g., "\\\\frac").
- IMPORTANT: If a formula is simple, keep it simple.
- DO NOT use markdown code blocks or triple backticks. Return ONLY raw JSON."""

SOLUTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "problemSummary": {"type": "string"},
        "steps": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "latex": {"type": "string"},
                },
                "required": ["title", "description", "latex"],
            },
        },
        "finalAnswer": {"type": "string"},
        "conceptExplanation": {"type": "string"},
        "relatedFormulas": {
            "type": "array",
            "items": {"type": "string"},
        },
    },
    "required": [
        "problemSummary",
        "steps",
        "finalAnswer",
        "conceptExplanation",
        "relatedFormulas",
    ],
}


class GeminiSolverService:
    """Relays one math problem to the generateContent endpoint"""

    def __init__(
        self,
        config: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        config = config or default_settings
        self.api_key = config.GEMINI_API_KEY
        self.model = config.GEMINI_MODEL
        self.base_url = config.GEMINI_BASE_URL.rstrip("/")
        self.thinking_budget = config.GEMINI_THINKING_BUDGET
        self.timeout = config.UPSTREAM_TIMEOUT
        self.client = client

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def build_parts(self, prompt: str, image: Optional[str] = None) -> List[Dict[str, Any]]:
        """Inline image first (if any), then the prompt text"""
        parts: List[Dict[str, Any]] = []
        if image:
            mime, data = split_data_uri(image)
            parts.append({
                "inlineData": {
                    "mimeType": mime or DEFAULT_IMAGE_MIME,
                    "data": data,
                }
            })
        parts.append({"text": prompt})
        return parts

    def build_request(self, prompt: str, image: Optional[str] = None) -> Dict[str, Any]:
        generation_config: Dict[str, Any] = {
            "responseMimeType": "application/json",
            "responseSchema": SOLUTION_SCHEMA,
        }
        if self.thinking_budget is not None:
            generation_config["thinkingConfig"] = {"thinkingBudget": self.thinking_budget}

        return {
            "contents": [{"parts": self.build_parts(prompt, image)}],
            "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
            "generationConfig": generation_config,
        }

    @staticmethod
    def extract_text(data: Dict[str, Any]) -> str:
        """First text part of the first candidate, ``"{}"`` when absent or not a string"""
        try:
            text = data["candidates"][0]["content"]["parts"][0].get("text")
        except (KeyError, IndexError, TypeError, AttributeError):
            text = None
        if not isinstance(text, str) or not text:
            return "{}"
        return text

    async def solve(self, prompt: str, image: Optional[str] = None) -> Dict[str, Any]:
        """
        Ask the model for a structured solution.

        Returns the sanitized JSON object exactly as the model produced it.
        Raises ApiKeyNotConfiguredError, UpstreamError or SolutionParseError.
        """
        if not self.api_key:
            logger.error("GEMINI_API_KEY is not configured")
            raise ApiKeyNotConfiguredError()

        payload = self.build_request(prompt, image)
        logger.info(f"Forwarding problem to {self.model}: {prompt[:80]!r} (image={'yes' if image else 'no'})")

        try:
            if self.client is not None:
                response = await self._post(self.client, payload)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, payload)
        except httpx.HTTPError as e:
            logger.error(f"Gemini API transport error: {str(e)}")
            raise UpstreamError(detail=str(e)) from e

        if response.is_error:
            logger.error(f"Gemini API error: {response.status_code} - {response.text}")
            raise UpstreamError(upstream_status=response.status_code, detail=response.text)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Gemini API returned a non-JSON body: {response.text[:200]!r}")
            raise SolutionParseError() from e

        solution = extract_json_payload(self.extract_text(data))
        logger.info("Solution payload extracted")
        return solution

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> httpx.Response:
        return await client.post(
            self.endpoint,
            params={"key": self.api_key},
            json=payload,
            headers={"Content-Type": "application/json"},
        )
