import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status

from budget_assistant.core import models, schemas
from budget_assistant.core.security import get_current_user
from budget_assistant.ai_feature.service import BudgetAssistant

router = APIRouter(prefix="/chat", tags=["Chat"])


# The assistant is built once at startup (see main.lifespan)
def get_assistant(request: Request) -> BudgetAssistant:
    return request.app.state.assistant


user_dep = Annotated[models.User, Depends(get_current_user)]
assistant_dep = Annotated[BudgetAssistant, Depends(get_assistant)]


@router.post("", response_model=schemas.ChatResponse)
async def chat(
    current_user: user_dep,
    assistant: assistant_dep,
    payload: Annotated[Optional[schemas.ChatRequest], Body()] = None,
):
    """
    Answer a chat message.

    Questions about the user's own money are answered from their stored
    budget data; anything else gets general advice with the conversation
    history.
    """
    # No body, no message or a blank one are all the same bad request
    if payload is None or not payload.message or not payload.message.strip():
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Message is required")

    try:
        response = await assistant.reply(
            payload.message, payload.history or [], current_user.id
        )
    except Exception as error:
        logging.error(f"Error processing chat request: {error}")
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process request"
        )

    return {"response": response}
