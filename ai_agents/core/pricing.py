"""Token cost estimation from a per-model pricing table (USD per million tokens)."""


def calculate_cost(
    pricing: dict[str, dict[str, float]],
    model: str | None,
    prompt_tokens: int,
    completion_tokens: int,
) -> float:
    """Return the USD cost of a response rounded to 8 decimals; 0 for unknown models."""
    model_pricing = pricing.get(model or "") if pricing else None
    if not model_pricing:
        return 0
    prompt_cost = (prompt_tokens / 1_000_000) * (model_pricing.get("prompt_per_million") or 0)
    completion_cost = (completion_tokens / 1_000_000) * (model_pricing.get("completion_per_million") or 0)
    return round(prompt_cost + completion_cost, 8)
