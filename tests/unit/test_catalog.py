"""
Unit tests for the model catalog and plan entitlements.
"""
import pytest

from aichat.ai.entitlements import (
    can_use_model,
    get_user_entitlements,
    has_reached_daily_limit,
)
from aichat.ai.models import (
    CHAT_MODELS,
    DEFAULT_CHAT_MODEL,
    estimate_cost,
    get_default_model,
    get_model_by_id,
    get_models_by_provider,
)
from aichat.core.exceptions import ValidationError

HAIKU = "claude-3-5-haiku-20241022"
SONNET = "claude-3-5-sonnet-20241022"
OPUS = "claude-3-opus-20240229"


class TestModelCatalog:
    def test_default_model(self):
        assert DEFAULT_CHAT_MODEL == SONNET
        assert get_default_model().id == SONNET

    def test_lookup(self):
        assert get_model_by_id(OPUS).max_tokens == 4096
        assert get_model_by_id(HAIKU).max_tokens == 8192
        assert get_model_by_id("gpt-4") is None

    def test_all_models_are_anthropic(self):
        assert len(get_models_by_provider("anthropic")) == len(CHAT_MODELS) == 3
        assert get_models_by_provider("openai") == []

    def test_estimate_cost(self):
        # 1M input at $3 plus 1M output at $15
        assert estimate_cost(SONNET, 1_000_000, 1_000_000) == 18.0
        assert estimate_cost(HAIKU, 1000, 2000) == pytest.approx(0.011)
        assert estimate_cost("unknown", 1000, 1000) == 0.0


class TestEntitlements:
    def test_plan_table(self):
        guest = get_user_entitlements("guest")
        assert guest.max_messages_per_day == 10
        assert guest.available_chat_model_ids == (HAIKU,)
        assert not guest.can_upload_files

        free = get_user_entitlements("free")
        assert free.max_tokens_per_message == 8000
        assert free.can_upload_files and not free.can_use_rag
        assert free.max_file_size_mb == 10

        pro = get_user_entitlements("pro")
        assert pro.can_use_rag and pro.max_file_size_mb == 50

        enterprise = get_user_entitlements("enterprise")
        assert enterprise.max_messages_per_day == -1
        assert enterprise.max_tokens_per_message == 32000

    def test_unknown_user_type(self):
        with pytest.raises(ValidationError):
            get_user_entitlements("platinum")

    def test_model_access(self):
        assert can_use_model("guest", HAIKU)
        assert not can_use_model("guest", SONNET)
        assert not can_use_model("free", OPUS)
        assert can_use_model("pro", OPUS)

    def test_daily_limit(self):
        assert not has_reached_daily_limit("free", 49)
        assert has_reached_daily_limit("free", 50)
        assert not has_reached_daily_limit("enterprise", 10_000_000)

    def test_to_dict_lists_models(self):
        data = get_user_entitlements("free").to_dict()
        assert data["available_chat_model_ids"] == [HAIKU, SONNET]
