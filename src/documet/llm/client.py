from typing import List, Dict, Optional
import logging
import httpx

from ..config import settings
from ..core.errors import CompletionError

logger = logging.getLogger("documet.llm")


class LLMClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key or settings.openai_api_key.get_secret_value()
        self.model = model or settings.chat_model
        self.url = (base_url or settings.openai_base_url).rstrip("/") + "/chat/completions"
        self.timeout = timeout if timeout is not None else settings.completion_timeout_seconds
        self._transport = transport

    async def complete(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float = 0.7,
    ) -> str:
        """
        Returns the assistant's text for a single chat completion, stripped.

        An empty string means the model produced no content; callers decide
        what to show instead.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    self.url,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Completion request failed (%s): %s", type(exc).__name__, exc)
            raise CompletionError(
                f"Completion failed: {type(exc).__name__}"
            ) from exc

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error("Completion response is not JSON: %.200s", resp.text)
            raise CompletionError("Malformed completion response") from exc

        try:
            content = data["choices"][0]["message"].get("content")
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise CompletionError("Malformed completion response") from exc

        return (content or "").strip()
