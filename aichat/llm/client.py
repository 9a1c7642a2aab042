"""
LLM Client for the hosted Claude models.

This module provides a clean interface to the Anthropic Messages API.
It handles:
- Splitting the system prompt from the conversation
- Token usage reporting
- Streaming
- One fallback attempt on Groq when a Groq key is configured
"""
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

import anthropic
import groq

from aichat.core.config import get_settings
from aichat.core.exceptions import LLMError
from aichat.core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class LLMResult:
    """A finished completion with its token usage."""
    text: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0


def split_system_prompt(
    messages: List[Dict[str, str]]
) -> Tuple[Optional[str], List[Dict[str, str]]]:
    """
    Separate the first system message from the conversation turns.

    Returns:
        (system prompt or None, user/assistant messages in order)
    """
    system = next((m["content"] for m in messages if m["role"] == "system"), None)
    conversation = [
        {"role": m["role"], "content": m["content"]}
        for m in messages
        if m["role"] != "system"
    ]
    return system, conversation


class LLMClient:
    """
    Client for generating chat completions.

    Example:
        >>> client = LLMClient()
        >>> result = client.generate(
        ...     "claude-3-5-haiku-20241022",
        ...     [{"role": "user", "content": "Hello"}],
        ... )
        >>> result.text
        'Hello! How can I help you today?'
    """

    def __init__(
        self,
        anthropic_client: Optional[anthropic.Anthropic] = None,
        groq_client: Optional[groq.Groq] = None
    ):
        self.settings = get_settings()
        self.client = anthropic_client or anthropic.Anthropic(
            api_key=self.settings.anthropic_api_key
        )

        if groq_client is None and self.settings.groq_api_key:
            groq_client = groq.Groq(api_key=self.settings.groq_api_key)
        self.fallback_client = groq_client
        self.fallback_model = self.settings.llm_fallback_model

        logger.info(
            f"LLM client initialized (fallback: "
            f"{self.fallback_model if self.fallback_client else 'disabled'})"
        )

    def generate(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ) -> LLMResult:
        """
        Generate a completion for a conversation.

        Args:
            model: Claude model id
            messages: Conversation as role/content dicts; the first system
                message becomes the system prompt
            max_tokens: Completion length limit
            temperature: Sampling temperature

        Returns:
            LLMResult with the text and token usage

        Raises:
            LLMError: If the provider (and the fallback, when configured) fails
        """
        request = self._build_request(model, messages, max_tokens, temperature)

        try:
            response = self.client.messages.create(**request)
        except anthropic.APIError as e:
            logger.error(f"Anthropic request failed ({model}): {e}")
            if self.fallback_client is None:
                raise LLMError(f"LLM request failed: {e}") from e
            return self._generate_fallback(messages, request["max_tokens"], request["temperature"])

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        logger.debug(
            f"Completion from {response.model}: "
            f"{response.usage.input_tokens} in / {response.usage.output_tokens} out"
        )
        return LLMResult(
            text=text,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )

    def stream(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None
    ) -> Iterator[str]:
        """Yield completion text as it arrives."""
        request = self._build_request(model, messages, max_tokens, temperature)

        try:
            with self.client.messages.stream(**request) as stream:
                for text in stream.text_stream:
                    yield text
        except anthropic.APIError as e:
            logger.error(f"Anthropic stream failed ({model}): {e}")
            raise LLMError(f"LLM stream failed: {e}") from e

    def _generate_fallback(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float
    ) -> LLMResult:
        logger.info(f"Falling back to Groq ({self.fallback_model})")
        try:
            response = self.fallback_client.chat.completions.create(
                model=self.fallback_model,
                messages=[{"role": m["role"], "content": m["content"]} for m in messages],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except groq.APIError as e:
            logger.error(f"Fallback provider failed ({self.fallback_model}): {e}")
            raise LLMError(f"LLM request failed: {e}") from e

        usage = response.usage
        return LLMResult(
            text=response.choices[0].message.content or "",
            model=self.fallback_model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )

    def _build_request(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: Optional[int],
        temperature: Optional[float]
    ) -> Dict[str, Any]:
        system, conversation = split_system_prompt(messages)
        if not conversation:
            raise LLMError("Cannot request a completion without user or assistant messages")

        request: Dict[str, Any] = {
            "model": model,
            "messages": conversation,
            "max_tokens": max_tokens or self.settings.llm_max_tokens,
            "temperature": self.settings.llm_temperature if temperature is None else temperature,
        }
        if system:
            request["system"] = system
        return request


_llm_client: Optional[LLMClient] = None


def get_llm_client() -> LLMClient:
    """Get or create the LLM client singleton."""
    global _llm_client
    if _llm_client is None:
        _llm_client = LLMClient()
    return _llm_client


def reset_llm_client() -> None:
    global _llm_client
    _llm_client = None
