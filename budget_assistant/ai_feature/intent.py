# Upstream routing: does the message ask about the user's own numbers
# (answer from their data) or is it general money advice?

BUDGET_KEYWORDS = (
    "my budget",
    "my spending",
    "my expenses",
    "my income",
    "how much did i spend",
    "how much have i spent",
    "my balance",
    "my account",
    "my savings",
    "my finances",
    "my transactions",
    "my categories",
    "spend on",
    "spent on",
    "this month",
    "last month",
)


def is_budget_query(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in BUDGET_KEYWORDS)
