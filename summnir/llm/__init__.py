"""Chat completion runner adapters."""

from .runner import Completion, CompletionRequest, LLMRunner, match_request_too_large

__all__ = ["Completion", "CompletionRequest", "LLMRunner", "match_request_too_large"]
