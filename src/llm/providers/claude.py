"""Claude (Anthropic) LLM provider."""

from ..base import LLMAuthError, LLMError, LLMProvider, LLMRateLimitError


class ClaudeProvider(LLMProvider):
    """Anthropic Claude provider."""

    provider_name = "claude"

    def __init__(self, api_key: str | None = None, model: str | None = None, client=None):
        self.model = model or "claude-sonnet-4-20250514"

        if client:
            self.client = client
            return

        try:
            from anthropic import Anthropic
        except ImportError:
            raise LLMError("anthropic package not installed. Run: pip install 'clientbook[claude]'")

        self.client = Anthropic(api_key=api_key)

    def _handle_error(self, e: Exception):
        try:
            from anthropic import APIError, AuthenticationError, RateLimitError
        except ImportError:
            raise LLMError(f"Claude error: {e}") from e

        if isinstance(e, AuthenticationError):
            raise LLMAuthError(f"Claude auth failed: {e}") from e
        if isinstance(e, RateLimitError):
            raise LLMRateLimitError(f"Claude rate limit: {e}") from e
        if isinstance(e, APIError):
            raise LLMError(f"Claude API error: {e}") from e
        raise LLMError(f"Claude error: {e}") from e

    def generate(
        self, messages: list[dict], system: str | None = None, max_tokens: int = 2000
    ) -> str:
        # Anthropic takes the system prompt separately, not as a message
        if system is None:
            system_msgs = [m["content"] for m in messages if m.get("role") == "system"]
            system = "\n\n".join(system_msgs) or None
        chat = [m for m in messages if m.get("role") != "system"]

        kwargs = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": chat,
        }
        if system:
            kwargs["system"] = system

        try:
            response = self.client.messages.create(**kwargs)
            return response.content[0].text
        except Exception as e:
            self._handle_error(e)
