from typing import Any, Optional

from langchain_core.messages import HumanMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from blogcraft.config.settings import Settings, get_settings
from blogcraft.utils.logger import get_logger

logger = get_logger(__name__)

# Gemini API pricing (per 1K tokens, USD)
GEMINI_PRICING = {
    "gemini-2.0-flash-lite": {"input": 0.000075, "output": 0.0003},
    "gemini-2.0-flash": {"input": 0.000075, "output": 0.0003},
    "gemini-2.0-pro": {"input": 0.000375, "output": 0.0015},
    "gemini-1.5-pro": {"input": 0.000375, "output": 0.0015},
    "gemini-1.5-flash": {"input": 0.000075, "output": 0.0003},
}
DEFAULT_PRICING_MODEL = "gemini-2.0-flash-lite"


def create_gemini_llm(
    model_name: str,
    settings: Optional[Settings] = None,
) -> ChatGoogleGenerativeAI:
    """Build a Gemini chat model with LangChain's own retries disabled."""
    if settings is None:
        settings = get_settings()

    return ChatGoogleGenerativeAI(
        model=model_name,
        google_api_key=settings.google_api_key,
        temperature=settings.llm_temperature,
        max_retries=0,
    )


def _extract_token_usage(response: Any) -> Optional[dict[str, int]]:
    usage = getattr(response, "usage_metadata", None)
    if not usage:
        return None
    return {
        "input_tokens": int(usage.get("input_tokens", 0) or 0),
        "output_tokens": int(usage.get("output_tokens", 0) or 0),
    }


def _response_text(response: Any) -> str:
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        # Multi-part responses come back as a list of text chunks / dicts
        return "".join(
            part.get("text", "") if isinstance(part, dict) else str(part)
            for part in content
        )
    return str(content)


async def gemini_llm_call(
    prompt: str,
    model_name: str,
    settings: Optional[Settings] = None,
) -> tuple[str, Optional[dict[str, int]]]:
    """
    Send a single prompt to Gemini and return the completion text.

    The call is made exactly once. Any error raised by the client
    propagates to the caller unchanged.

    Args:
        prompt: The full prompt text
        model_name: The Gemini model to use
        settings: Optional settings object

    Returns:
        Tuple of (completion text, token usage or None)
    """
    llm = create_gemini_llm(model_name, settings)

    logger.debug(f"Invoking {model_name} with a {len(prompt)} character prompt")
    response = await llm.ainvoke([HumanMessage(content=prompt)])

    token_usage = _extract_token_usage(response)
    if token_usage:
        logger.info(
            f"{model_name} usage: {token_usage['input_tokens']} in / "
            f"{token_usage['output_tokens']} out"
        )
    return _response_text(response), token_usage


def estimate_cost(token_usage: Optional[dict[str, int]], model_name: str) -> float:
    """
    Estimate the USD cost of a call from its token usage.

    Unknown models are priced as the default lite model.
    """
    if not token_usage:
        return 0.0

    rate = GEMINI_PRICING.get(model_name, GEMINI_PRICING[DEFAULT_PRICING_MODEL])
    input_cost = token_usage.get("input_tokens", 0) * rate["input"] / 1000
    output_cost = token_usage.get("output_tokens", 0) * rate["output"] / 1000
    return input_cost + output_cost
