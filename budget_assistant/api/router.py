from fastapi import APIRouter
from budget_assistant.api.endpoints import auth, chat

api_router = APIRouter()

# Combine all sub-routers into one
api_router.include_router(auth.router)
api_router.include_router(chat.router)
