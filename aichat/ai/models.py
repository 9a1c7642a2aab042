"""
Chat model catalog.

Pricing is in US dollars per million tokens.
"""
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_CHAT_MODEL = "claude-3-5-sonnet-20241022"


@dataclass(frozen=True)
class ModelPricing:
    input: float
    output: float


@dataclass(frozen=True)
class ChatModel:
    id: str
    name: str
    description: str
    provider: str
    context_window: int
    max_tokens: int
    pricing: Optional[ModelPricing] = field(default=None)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


CHAT_MODELS: List[ChatModel] = [
    ChatModel(
        id="claude-3-5-sonnet-20241022",
        name="Claude 3.5 Sonnet",
        description="Most intelligent model for complex reasoning and analysis",
        provider="anthropic",
        context_window=200000,
        max_tokens=8192,
        pricing=ModelPricing(input=3.0, output=15.0),
    ),
    ChatModel(
        id="claude-3-5-haiku-20241022",
        name="Claude 3.5 Haiku",
        description="Fast and efficient model for quick tasks",
        provider="anthropic",
        context_window=200000,
        max_tokens=8192,
        pricing=ModelPricing(input=1.0, output=5.0),
    ),
    ChatModel(
        id="claude-3-opus-20240229",
        name="Claude 3 Opus",
        description="Most capable model for complex tasks",
        provider="anthropic",
        context_window=200000,
        max_tokens=4096,
        pricing=ModelPricing(input=15.0, output=75.0),
    ),
]


def get_model_by_id(model_id: str) -> Optional[ChatModel]:
    return next((model for model in CHAT_MODELS if model.id == model_id), None)


def get_models_by_provider(provider: str) -> List[ChatModel]:
    return [model for model in CHAT_MODELS if model.provider == provider]


def get_default_model() -> ChatModel:
    return get_model_by_id(DEFAULT_CHAT_MODEL) or CHAT_MODELS[0]


def estimate_cost(model_id: str, input_tokens: int, output_tokens: int) -> float:
    """
    Estimate the dollar cost of one completion.

    Unknown or unpriced models cost 0.0.
    """
    model = get_model_by_id(model_id)
    if model is None or model.pricing is None:
        return 0.0
    cost = (
        input_tokens * model.pricing.input
        + output_tokens * model.pricing.output
    ) / 1_000_000
    return round(cost, 6)
