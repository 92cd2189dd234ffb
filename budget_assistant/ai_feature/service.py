"""Budget assistant orchestration.

Flow for a personal-data question:
1. Classify which data categories are needed
2. Fetch those categories for the caller
3. Build the grounded prompt
4. Complete with Gemini

Anything else goes straight to multi-turn general advice.
"""
import logging
from enum import Enum
from typing import Sequence

from budget_assistant.core import schemas
from budget_assistant.ai_feature.classifier import classify_query
from budget_assistant.ai_feature.completion import GeminiCompletionClient
from budget_assistant.ai_feature.fetcher import BudgetDataFetcher
from budget_assistant.ai_feature.intent import is_budget_query
from budget_assistant.ai_feature.prompt_builder import build_budget_prompt

logger = logging.getLogger(__name__)


RETRIEVAL_APOLOGY = (
    "I'm sorry, but I encountered an error while retrieving your budget "
    "information. Please try again later."
)


class RagStep(Enum):
    CLASSIFY = "classify"
    FETCH = "fetch"
    BUILD_PROMPT = "build_prompt"
    COMPLETE = "complete"


class BudgetAssistant:
    """
    Stateless per call; holds only process-wide collaborators.

    Example:
        assistant = BudgetAssistant(fetcher, completion)
        reply = await assistant.reply("How much did I spend this month?", [], user.id)
    """

    def __init__(self, fetcher: BudgetDataFetcher, completion: GeminiCompletionClient):
        self.fetcher = fetcher
        self.completion = completion

    async def answer_budget_query(
        self, query: str, user_id: str
    ) -> schemas.BudgetQueryResponse:
        """
        Answer a question from the caller's own budget data.

        Never raises: a failure before the model call yields the retrieval
        apology without relevant_data; model failures are already turned
        into fallback text by the completion client.
        """
        step = RagStep.CLASSIFY
        try:
            categories = classify_query(query)
            logger.info(
                f"[User {user_id}] {step.value}: "
                f"{sorted(category.value for category in categories)}"
            )

            step = RagStep.FETCH
            budget_data = await self.fetcher.fetch(categories, user_id)
            logger.info(
                f"[User {user_id}] {step.value}: "
                f"{sorted(budget_data.to_prompt_dict())}"
            )

            step = RagStep.BUILD_PROMPT
            prompt = build_budget_prompt(query, budget_data)
            logger.info(f"[User {user_id}] {step.value}: {len(prompt)} chars")
        except Exception as error:
            logger.error(f"[User {user_id}] {step.value} failed: {error!r}")
            return schemas.BudgetQueryResponse(answer=RETRIEVAL_APOLOGY)

        logger.info(f"[User {user_id}] {RagStep.COMPLETE.value}: sending prompt")
        answer = await self.completion.complete(prompt)

        return schemas.BudgetQueryResponse(answer=answer, relevant_data=budget_data)

    async def answer_general_question(
        self, message: str, history: Sequence[schemas.ChatMessage]
    ) -> str:
        return await self.completion.complete_with_history(history, message)

    async def reply(
        self, message: str, history: Sequence[schemas.ChatMessage], user_id: str
    ) -> str:
        """Route a chat message to the data-grounded or the general-advice path."""
        if is_budget_query(message):
            response = await self.answer_budget_query(message, user_id)
            return response.answer
        return await self.answer_general_question(message, history)
