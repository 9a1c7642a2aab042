"""
Plan entitlements - what each user type may do.

A limit of -1 means unlimited.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Tuple

from aichat.core.exceptions import ValidationError

UNLIMITED = -1

HAIKU = "claude-3-5-haiku-20241022"
SONNET = "claude-3-5-sonnet-20241022"
OPUS = "claude-3-opus-20240229"

USER_TYPES = ("guest", "free", "pro", "enterprise")


@dataclass(frozen=True)
class Entitlements:
    max_messages_per_day: int
    max_tokens_per_message: int
    available_chat_model_ids: Tuple[str, ...]
    can_upload_files: bool
    can_use_rag: bool
    max_file_size_mb: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["available_chat_model_ids"] = list(self.available_chat_model_ids)
        return data


ENTITLEMENTS_BY_USER_TYPE: Dict[str, Entitlements] = {
    "guest": Entitlements(
        max_messages_per_day=10,
        max_tokens_per_message=4000,
        available_chat_model_ids=(HAIKU,),
        can_upload_files=False,
        can_use_rag=False,
        max_file_size_mb=0,
    ),
    "free": Entitlements(
        max_messages_per_day=50,
        max_tokens_per_message=8000,
        available_chat_model_ids=(HAIKU, SONNET),
        can_upload_files=True,
        can_use_rag=False,
        max_file_size_mb=10,
    ),
    "pro": Entitlements(
        max_messages_per_day=500,
        max_tokens_per_message=16000,
        available_chat_model_ids=(HAIKU, SONNET, OPUS),
        can_upload_files=True,
        can_use_rag=True,
        max_file_size_mb=50,
    ),
    "enterprise": Entitlements(
        max_messages_per_day=UNLIMITED,
        max_tokens_per_message=32000,
        available_chat_model_ids=(HAIKU, SONNET, OPUS),
        can_upload_files=True,
        can_use_rag=True,
        max_file_size_mb=100,
    ),
}


def get_user_entitlements(user_type: str) -> Entitlements:
    """
    Look up the entitlements for a user type.

    Raises:
        ValidationError: If the user type is unknown
    """
    try:
        return ENTITLEMENTS_BY_USER_TYPE[user_type]
    except KeyError:
        raise ValidationError(
            f"Unknown user type '{user_type}'. Must be one of: {', '.join(USER_TYPES)}",
            field="user_type",
        ) from None


def can_use_model(user_type: str, model_id: str) -> bool:
    return model_id in get_user_entitlements(user_type).available_chat_model_ids


def has_reached_daily_limit(user_type: str, messages_used_today: int) -> bool:
    limit = get_user_entitlements(user_type).max_messages_per_day
    return limit != UNLIMITED and messages_used_today >= limit
