"""Gemini completion client for budget answers and general advice."""
import logging
from typing import List, Sequence

from google import genai
from google.genai import types

from budget_assistant.core import schemas

logger = logging.getLogger(__name__)


BUDGET_ANSWER_FALLBACK = (
    "I'm sorry, I couldn't generate a response based on your budget "
    "information at this time."
)
GENERAL_ADVICE_FALLBACK = (
    "I'm sorry, I'm having trouble providing financial advice at the moment. "
    "Please try again later."
)
ADVISOR_PERSONA = (
    "You are a helpful budget assistant providing general financial advice. "
    "You provide concise, practical financial guidance and budgeting tips."
)


class CompletionError(Exception):
    """The model call returned nothing usable."""


def to_gemini_role(role: str) -> str:
    """Chat UI roles are user/assistant; Gemini expects user/model."""
    return "user" if role == "user" else "model"


def to_gemini_history(history: Sequence[schemas.ChatMessage]) -> List[types.Content]:
    return [
        types.Content(
            role=to_gemini_role(message.role),
            parts=[types.Part(text=message.content)],
        )
        for message in history
    ]


class GeminiCompletionClient:
    """
    Wraps one shared genai.Client.

    Neither method raises: any failure is logged and replaced with a
    fixed apology string.
    """

    def __init__(
        self,
        client: genai.Client,
        budget_model: str,
        advice_model: str,
        max_output_tokens: int = 1000,
    ):
        self.client = client
        self.budget_model = budget_model
        self.advice_model = advice_model
        self.max_output_tokens = max_output_tokens

    async def complete(self, prompt: str) -> str:
        """Single-turn completion for a fully assembled prompt."""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.budget_model, contents=prompt
            )
            if not response.text:
                raise CompletionError("Gemini returned an empty response")
            return response.text
        except Exception as error:
            logger.error(f"Error generating response with Gemini: {error!r}")
            return BUDGET_ANSWER_FALLBACK

    async def complete_with_history(
        self, history: Sequence[schemas.ChatMessage], message: str
    ) -> str:
        """
        Multi-turn completion for general advice.

        The advisor persona goes in as the system instruction ahead of the
        translated history; output length is capped by max_output_tokens.
        """
        try:
            chat = self.client.aio.chats.create(
                model=self.advice_model,
                history=to_gemini_history(history),
                config=types.GenerateContentConfig(
                    system_instruction=ADVISOR_PERSONA,
                    max_output_tokens=self.max_output_tokens,
                ),
            )
            response = await chat.send_message(message)
            if not response.text:
                raise CompletionError("Gemini returned an empty response")
            return response.text
        except Exception as error:
            logger.error(f"Error getting general financial advice: {error!r}")
            return GENERAL_ADVICE_FALLBACK
