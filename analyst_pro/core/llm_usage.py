"""Centralized LLM usage logger for token/cost tracking."""

from typing import Any

from analyst_pro.core.logging import get_logger

logger = get_logger(__name__)

# Pricing per 1M tokens: (input, output)
MODEL_PRICING: dict[str, tuple[float, float]] = {
    "claude-opus-4-5-20251101": (15.0, 75.0),
    "claude-sonnet-4-5-20250929": (3.0, 15.0),
    "claude-sonnet-4-20250514": (3.0, 15.0),
    "claude-haiku-4-5-20251001": (0.80, 4.0),
    "claude-3-5-haiku-20241022": (0.80, 4.0),
}


def _estimate_cost(
    model: str,
    tokens_input: int,
    tokens_output: int,
    tokens_cache_read: int = 0,
) -> float:
    """Estimate cost in USD based on model pricing."""
    pricing = MODEL_PRICING.get(model)
    if not pricing:
        # Try prefix match for model variants
        for key, val in MODEL_PRICING.items():
            if model.startswith(key.rsplit("-", 1)[0]):
                pricing = val
                break
    if not pricing:
        logger.warning(f"No pricing found for model '{model}', using $0")
        return 0.0

    input_rate, output_rate = pricing
    # Cache reads are typically 90% cheaper
    cache_discount = 0.1
    effective_input = (tokens_input - tokens_cache_read) + (tokens_cache_read * cache_discount)
    cost = (effective_input * input_rate / 1_000_000) + (tokens_output * output_rate / 1_000_000)
    return round(cost, 6)


def log_llm_usage(
    chain: str,
    model: str,
    usage: Any,
    duration_ms: int = 0,
    project_id: str | None = None,
) -> None:
    """Log token usage for one LLM call. Fire-and-forget."""
    try:
        tokens_input = int(getattr(usage, "input_tokens", 0) or 0)
        tokens_output = int(getattr(usage, "output_tokens", 0) or 0)
        tokens_cache_read = int(getattr(usage, "cache_read_input_tokens", 0) or 0)
        estimated_cost = _estimate_cost(model, tokens_input, tokens_output, tokens_cache_read)

        logger.info(
            f"LLM usage: {chain} ({model})",
            extra={
                "extra_data": {
                    "chain": chain,
                    "model": model,
                    "tokens_input": tokens_input,
                    "tokens_output": tokens_output,
                    "tokens_cache_read": tokens_cache_read,
                    "estimated_cost_usd": estimated_cost,
                    "duration_ms": duration_ms,
                    "project_id": project_id,
                }
            },
        )
    except Exception as e:
        logger.warning(f"Failed to log LLM usage: {e}")
