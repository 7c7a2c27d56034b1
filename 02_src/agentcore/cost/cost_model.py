"""Token → USD pricing.

Prices are USD per one million tokens and are hard-coded per model tier;
there is no network lookup.
"""

from dataclasses import dataclass

from ..models import TokenUsage


@dataclass(frozen=True)
class ModelPricing:
    """Per-class prices (USD / 1M tokens) for one model tier."""

    input: float
    output: float
    cache_creation: float
    cache_read: float


PRICING_TABLE: dict[str, ModelPricing] = {
    "sonnet": ModelPricing(input=3.0, output=15.0, cache_creation=3.75, cache_read=0.30),
    "opus": ModelPricing(input=15.0, output=75.0, cache_creation=18.75, cache_read=1.50),
    "haiku": ModelPricing(input=0.80, output=4.0, cache_creation=1.0, cache_read=0.08),
}
DEFAULT_TIER = "sonnet"


def pricing_for_model(model: str | None) -> ModelPricing:
    """Pick the pricing tier whose name appears in *model*; default to sonnet."""
    if model:
        lowered = model.lower()
        for tier, pricing in PRICING_TABLE.items():
            if tier in lowered:
                return pricing
    return PRICING_TABLE[DEFAULT_TIER]


def compute_cost(usage: TokenUsage, pricing: ModelPricing) -> float:
    """Return the USD cost of *usage* under *pricing*."""
    return (
        usage.input_tokens / 1_000_000 * pricing.input
        + usage.output_tokens / 1_000_000 * pricing.output
        + usage.cache_creation_tokens / 1_000_000 * pricing.cache_creation
        + usage.cache_read_tokens / 1_000_000 * pricing.cache_read
    )


class CostAccumulator:
    """Running token and USD totals for one execution session.

    Totals never decrease: negative counts reported by a runtime are
    treated as zero.
    """

    def __init__(self, pricing: ModelPricing | None = None):
        self.pricing = pricing or PRICING_TABLE[DEFAULT_TIER]
        self.input_tokens = 0
        self.output_tokens = 0
        self.cache_creation_tokens = 0
        self.cache_read_tokens = 0
        self.total_cost_usd = 0.0
        self.steps = 0

    def add(self, usage: TokenUsage) -> float:
        """Accumulate one step and return its cost."""
        step = TokenUsage(
            input_tokens=max(usage.input_tokens, 0),
            output_tokens=max(usage.output_tokens, 0),
            cache_creation_tokens=max(usage.cache_creation_tokens, 0),
            cache_read_tokens=max(usage.cache_read_tokens, 0),
        )
        step_cost = compute_cost(step, self.pricing)

        self.input_tokens += step.input_tokens
        self.output_tokens += step.output_tokens
        self.cache_creation_tokens += step.cache_creation_tokens
        self.cache_read_tokens += step.cache_read_tokens
        self.total_cost_usd += step_cost
        self.steps += 1
        return step_cost

    @property
    def tokens_used(self) -> int:
        return self.input_tokens + self.output_tokens

    def snapshot(self) -> dict:
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "cacheCreationTokens": self.cache_creation_tokens,
            "cacheReadTokens": self.cache_read_tokens,
            "costUsd": self.total_cost_usd,
        }
