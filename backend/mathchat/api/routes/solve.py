import json
import logging
import time

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from mathchat.core.exceptions import MathChatError, MissingPromptError, SolutionParseError
from mathchat.models.schemas import SolveRequest
from mathchat.services.gemini_service import GeminiSolverService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_solver_service() -> GeminiSolverService:
    """New service per invocation; nothing is shared between requests"""
    return GeminiSolverService()


async def read_solve_request(request: Request) -> SolveRequest:
    """Parse the body by hand so a bad body maps to our error contract, not a 422"""
    try:
        body = await request.json()
        return SolveRequest.model_validate(body)
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        logger.error(f"Error in solve-math function: unreadable request body ({str(e)})")
        raise SolutionParseError() from e


@router.post("/functions/v1/solve-math")
async def solve_math(
    request: Request,
    service: GeminiSolverService = Depends(get_solver_service),
):
    """
    Solve one math problem.

    - **prompt**: the problem text (required)
    - **image**: optional ``data:<mime>;base64,<data>`` photo of the problem

    Returns the MathSolution JSON exactly as the model produced it, or
    ``{"error": ...}`` with 400/500.
    """
    solve_request = await read_solve_request(request)

    if not solve_request.prompt:
        logger.warning("Rejected solve-math request without prompt")
        raise MissingPromptError()

    start_time = time.time()
    logger.info(f"📝 Solve request: {solve_request.prompt[:100]}...")

    try:
        solution = await service.solve(solve_request.prompt, solve_request.image)
    except MathChatError:
        raise
    except Exception as e:
        logger.error(f"Error in solve-math function: {str(e)}")
        raise SolutionParseError() from e

    logger.info(f"✅ Solution relayed in {time.time() - start_time:.2f}s")
    return solution
