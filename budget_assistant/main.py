import asyncio
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from google import genai
from starlette.exceptions import HTTPException as StarletteHTTPException
import alembic.config
import alembic.command

from budget_assistant.core.config import settings
from budget_assistant.core.database import engine, AsyncSessionLocal
from budget_assistant.api.router import api_router
from budget_assistant.ai_feature.completion import GeminiCompletionClient
from budget_assistant.ai_feature.fetcher import BudgetDataFetcher
from budget_assistant.ai_feature.service import BudgetAssistant

logger = logging.getLogger(__name__)


def run_migrations():
    """Sync function to run migrations"""
    alembic_cfg = alembic.config.Config("alembic.ini")
    # Logging is already configured by the app
    alembic_cfg.attributes["configure_logger"] = False
    alembic.command.upgrade(alembic_cfg, "head")


def build_assistant() -> BudgetAssistant:
    """Wire the process-wide DB session factory and Gemini client together."""
    completion = GeminiCompletionClient(
        client=genai.Client(api_key=settings.GEMINI_API_KEY),
        budget_model=settings.GEMINI_BUDGET_MODEL,
        advice_model=settings.GEMINI_ADVICE_MODEL,
        max_output_tokens=settings.GEMINI_MAX_OUTPUT_TOKENS,
    )
    fetcher = BudgetDataFetcher(
        AsyncSessionLocal, recent_limit=settings.RECENT_TRANSACTIONS_LIMIT
    )
    return BudgetAssistant(fetcher, completion)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=settings.LOG_LEVEL)

    # Apply any pending migrations automatically when the app starts
    try:
        await asyncio.to_thread(run_migrations)
        logger.info("Migrations applied successfully (or already up-to-date)")
    except Exception as e:
        logger.error(f"Migration error during startup: {e}")

    app.state.assistant = build_assistant()

    yield
    await engine.dispose()


app = FastAPI(title="Budget Assistant API", lifespan=lifespan)


# Error bodies are {"error": "..."} everywhere
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Welcome to the Budget Assistant API"}
