"""
LLM module - Hosted model access.
"""
from aichat.llm.client import LLMClient, LLMResult, get_llm_client, reset_llm_client

__all__ = ["LLMClient", "LLMResult", "get_llm_client", "reset_llm_client"]
