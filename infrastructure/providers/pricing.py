# infrastructure/providers/pricing.py
from dataclasses import dataclass
from typing import Optional, Tuple

# Exact input/output accounting is not exposed per call
INPUT_TOKEN_SHARE = 0.7
OUTPUT_TOKEN_SHARE = 0.3

PER_THOUSAND = 1_000
PER_MILLION = 1_000_000


@dataclass(frozen=True)
class ModelPrice:
    input_price: float
    output_price: float


@dataclass(frozen=True)
class PriceTableCostCalculator:
    """Estimate call cost from total tokens and a per-model price table.

    ``prices`` is matched in order by substring of the model identifier;
    ``unit`` is the token count the vendor quotes prices per.
    """
    prices: Tuple[Tuple[str, ModelPrice], ...]
    default: ModelPrice
    unit: int = PER_MILLION

    def price_for(self, model: str) -> ModelPrice:
        for pattern, price in self.prices:
            if pattern in model:
                return price
        return self.default

    def cost(self, tokens_used: Optional[int], model: str) -> Optional[float]:
        if tokens_used is None:
            return None

        price = self.price_for(model or "")
        input_tokens = tokens_used * INPUT_TOKEN_SHARE
        output_tokens = tokens_used * OUTPUT_TOKEN_SHARE

        return (input_tokens / self.unit) * price.input_price + (output_tokens / self.unit) * price.output_price


ANTHROPIC_PRICING = PriceTableCostCalculator(
    prices=(
        ("haiku", ModelPrice(0.0008, 0.004)),
        ("opus", ModelPrice(0.015, 0.075)),
        ("sonnet", ModelPrice(0.003, 0.015)),
    ),
    default=ModelPrice(0.003, 0.015),
    unit=PER_THOUSAND,
)

OPENAI_PRICING = PriceTableCostCalculator(
    prices=(
        ("gpt-4o-mini", ModelPrice(0.15, 0.60)),
        ("gpt-4o", ModelPrice(2.50, 10.00)),
        ("gpt-4-turbo", ModelPrice(10.00, 30.00)),
        ("gpt-4", ModelPrice(30.00, 60.00)),
        ("gpt-3.5-turbo", ModelPrice(0.50, 1.50)),
    ),
    default=ModelPrice(2.50, 10.00),
)

GEMINI_PRICING = PriceTableCostCalculator(
    prices=(
        ("gemini-2.0-flash", ModelPrice(0.10, 0.40)),
        ("gemini-1.5-pro", ModelPrice(1.25, 5.00)),
        ("gemini-1.5-flash", ModelPrice(0.075, 0.30)),
    ),
    default=ModelPrice(0.10, 0.40),
)
