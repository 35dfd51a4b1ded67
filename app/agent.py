import json
from typing import Any, Optional, Sequence

from langchain.agents import create_agent
from langchain.agents.middleware import ModelCallLimitMiddleware
from langchain.chat_models import init_chat_model

from app.config import MAX_MODEL_CALLS, MODEL_NAME
from app.middleware import retry_model, retry_tool
from app.prompts.system_prompt import SYSTEM_PROMPT
from app.tools.external.listings import search_listings
from app.tools.external.reference_data import ReferenceData

tools = [search_listings]


def recursion_limit(max_model_calls: int = MAX_MODEL_CALLS) -> int:
    """Graph step ceiling, above the four steps each tool round takes, so the model-call limit ends a turn first."""
    return 4 * max_model_calls + 5


def _to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


def render_system_prompt(reference: ReferenceData) -> str:
    return SYSTEM_PROMPT.format(
        destinations=_to_json([d.model_dump() for d in reference.destinations]),
        categories=_to_json([c.model_dump() for c in reference.categories]),
        faq=_to_json(reference.faq),
        privacy_policy=_to_json(reference.privacy_policy),
        destination_names=", ".join(reference.destination_names()),
        category_names=", ".join(c.name for c in reference.categories),
    )


def build_agent(
    system_prompt: str,
    *,
    api_key: Optional[str] = None,
    model: Any = None,
    agent_tools: Optional[Sequence[Any]] = None,
    max_model_calls: int = MAX_MODEL_CALLS,
):
    """Create the per-turn agent. The system prompt embeds that turn's reference data."""
    if model is None:
        model = init_chat_model(MODEL_NAME, api_key=api_key)
    return create_agent(
        model=model,
        tools=list(agent_tools) if agent_tools is not None else tools,
        system_prompt=system_prompt,
        middleware=[
            ModelCallLimitMiddleware(run_limit=max_model_calls, exit_behavior="end"),
            retry_model,
            retry_tool,
        ],
    )
