import json

from budget_assistant.core import schemas


BUDGET_PROMPT_TEMPLATE = """
You are a helpful budget assistant that provides personalized financial insights based on user data.
Answer the following question using ONLY the provided data. If you cannot answer based on the data, say so politely instead of guessing.

USER BUDGET DATA:
{context}

USER QUESTION:
{query}

Provide a helpful, concise response. Include specific numbers from the data when relevant.
Don't mention that you're using "the provided data" - just answer naturally as if you have direct access to their budget information.
"""


def serialize_budget_data(data: schemas.BudgetDataAggregate) -> str:
    """Indented JSON of the fields that were actually fetched."""
    return json.dumps(data.to_prompt_dict(), indent=2, ensure_ascii=False)


def build_budget_prompt(query: str, data: schemas.BudgetDataAggregate) -> str:
    """
    Compose the single-turn prompt for a data-grounded answer.

    The question is embedded verbatim after the data block.
    """
    return BUDGET_PROMPT_TEMPLATE.format(
        context=serialize_budget_data(data), query=query
    )
