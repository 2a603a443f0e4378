"""
Unit tests for calculate_cost().
"""

from ai_agents.core.config import DEFAULT_PRICING
from ai_agents.core.pricing import calculate_cost


def test_gpt41_one_million_each_way() -> None:
    assert calculate_cost(DEFAULT_PRICING, "gpt-4.1", 1_000_000, 1_000_000) == 10.0


def test_unknown_model_costs_nothing() -> None:
    assert calculate_cost(DEFAULT_PRICING, "not-a-model", 1_000_000, 1_000_000) == 0
    assert calculate_cost(DEFAULT_PRICING, None, 10, 10) == 0


def test_rounds_to_eight_decimals() -> None:
    # 1 prompt token on gpt-4.1-nano = 1e-7 USD; 1 completion token = 4e-7 USD
    assert calculate_cost(DEFAULT_PRICING, "gpt-4.1-nano", 1, 1) == 0.0000005
    assert calculate_cost(DEFAULT_PRICING, "gpt-4.1-mini", 3, 0) == round(3 * 0.4 / 1_000_000, 8)


def test_custom_pricing_table() -> None:
    pricing = {"m": {"prompt_per_million": 1.0}}
    assert calculate_cost(pricing, "m", 2_000_000, 5_000_000) == 2.0
