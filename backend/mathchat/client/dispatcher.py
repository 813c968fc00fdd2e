import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from mathchat.core.config import Settings, settings as default_settings
from mathchat.core.exceptions import DispatchError, MissingPromptError, SolutionParseError
from mathchat.models.schemas import MathSolution

logger = logging.getLogger(__name__)

SOLVE_PATH = "/functions/v1/solve-math"


class MathSolverClient:
    """Sends one problem to the solve-math proxy; no retries"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        anon_key: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        config: Optional[Settings] = None,
    ):
        config = config or default_settings
        self.base_url = (base_url or config.MATHCHAT_PROXY_URL).rstrip("/")
        self.anon_key = anon_key if anon_key is not None else config.MATHCHAT_ANON_KEY
        self.timeout = timeout or config.CLIENT_TIMEOUT
        self.client = client

    @property
    def url(self) -> str:
        return f"{self.base_url}{SOLVE_PATH}"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.anon_key:
            headers["Authorization"] = f"Bearer {self.anon_key}"
            headers["apikey"] = self.anon_key
        return headers

    async def solve(self, prompt: str, image: Optional[str] = None) -> MathSolution:
        """
        POST the problem and return the parsed solution.

        Raises DispatchError for transport failures and error statuses,
        SolutionParseError when the body is not a MathSolution.
        """
        if not prompt or not prompt.strip():
            raise MissingPromptError()

        body: Dict[str, Any] = {"prompt": prompt}
        if image:
            body["image"] = image

        try:
            if self.client is not None:
                response = await self.client.post(self.url, json=body, headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=body, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error(f"Could not reach solver proxy at {self.url}: {str(e)}")
            raise DispatchError(f"Could not reach solver: {str(e)}") from e

        if response.is_error:
            message = self._error_message(response)
            logger.error(f"Solver proxy returned {response.status_code}: {message}")
            raise DispatchError(message, status_code=response.status_code)

        try:
            return MathSolution.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Solver proxy returned an unusable solution: {str(e)}")
            raise SolutionParseError() from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
        return f"Solver request failed with status {response.status_code}"
