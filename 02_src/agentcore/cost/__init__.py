"""Cost module."""

from .cost_model import (
    DEFAULT_TIER,
    PRICING_TABLE,
    CostAccumulator,
    ModelPricing,
    compute_cost,
    pricing_for_model,
)

__all__ = [
    "DEFAULT_TIER",
    "PRICING_TABLE",
    "CostAccumulator",
    "ModelPricing",
    "compute_cost",
    "pricing_for_model",
]
