import logging
from typing import List, Optional, Tuple

from mathchat.client.dispatcher import MathSolverClient
from mathchat.core.exceptions import MathChatError
from mathchat.models.schemas import ChatMessage, MessageRole

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = "Synthesize mathematical derivation."
SUCCESS_TEXT = "Analysis complete."
FAILURE_TEXT = "Synthesis failed: The computational engine encountered an error."


class ChatSession:
    """Append-only transcript with at most one submission in flight"""

    def __init__(self, client: Optional[MathSolverClient] = None):
        self.client = client or MathSolverClient()
        self._messages: List[ChatMessage] = []
        self.is_loading = False

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return tuple(self._messages)

    def reset(self) -> None:
        self._messages = []
        logger.info("Transcript cleared")

    async def submit(self, prompt: str, image: Optional[str] = None) -> Optional[ChatMessage]:
        """
        Record the user's turn, ask the solver, record the reply.

        Returns the assistant message, or None when the submission was
        ignored (nothing to send, or a previous one is still running).
        A failed solve still produces an assistant message carrying the
        fixed failure text; the user's message is kept.
        """
        prompt = prompt or ""
        if (not prompt.strip() and not image) or self.is_loading:
            return None

        self._messages.append(ChatMessage(role=MessageRole.USER, content=prompt, image=image))
        self.is_loading = True

        try:
            solution = await self.client.solve(prompt if prompt.strip() else DEFAULT_PROMPT, image)
            reply = ChatMessage(role=MessageRole.ASSISTANT, content=SUCCESS_TEXT, solution=solution)
        except MathChatError as e:
            logger.error(f"Solve failed: {e.message}")
            reply = ChatMessage(role=MessageRole.ASSISTANT, content=FAILURE_TEXT)
        except Exception as e:
            logger.error(f"Unexpected error while solving: {str(e)}")
            reply = ChatMessage(role=MessageRole.ASSISTANT, content=FAILURE_TEXT)
        finally:
            self.is_loading = False

        self._messages.append(reply)
        return reply
