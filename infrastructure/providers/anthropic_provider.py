# infrastructure/providers/anthropic_provider.py
from typing import Any, Dict, List, Optional

import httpx

from domain.models.mockup_source import MockupSource
from domain.ports.ai_provider import ProviderResponse
from infrastructure.providers.http import image_payload, post_json, probe
from infrastructure.providers.parsing import TextResponseParser
from infrastructure.providers.pricing import ANTHROPIC_PRICING

ANTHROPIC_VERSION = "2023-06-01"


def extract_text(payload: Dict[str, Any]) -> str:
    content = payload.get("content")
    # Messages API returns a list of content blocks; older shapes a plain string
    if isinstance(content, str):
        return content
    return "\n".join(block["text"] for block in content or [] if block.get("text"))


def extract_total_tokens(payload: Dict[str, Any]) -> Optional[int]:
    usage = payload.get("usage")
    if not usage:
        return None
    return int(usage.get("input_tokens", 0)) + int(usage.get("output_tokens", 0))


class AnthropicProvider:
    """Claude Messages API adapter"""

    name = "anthropic"
    supports_vision = True

    def __init__(self, api_key: str, http_client: httpx.AsyncClient,
                 model: str = "claude-3-5-sonnet-20241022", priority: int = 1,
                 timeout_seconds: float = 60.0, vision_timeout_seconds: float = 120.0,
                 probe_timeout_seconds: float = 10.0,
                 base_url: str = "https://api.anthropic.com"):
        self.api_key = api_key
        self.http_client = http_client
        self.model = model
        self.priority = priority
        self.timeout_seconds = timeout_seconds
        self.vision_timeout_seconds = vision_timeout_seconds
        self.probe_timeout_seconds = probe_timeout_seconds
        self.base_url = base_url.rstrip("/")
        self.parser = TextResponseParser(self.name, extract_text, extract_total_tokens)
        self.cost_calculator = ANTHROPIC_PRICING

    def _headers(self) -> Dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    async def is_available(self) -> bool:
        if not self.api_key:
            return False
        return await probe(self.http_client, f"{self.base_url}/v1/models",
                           self._headers(), self.probe_timeout_seconds)

    async def _send(self, model: str, content: Any, max_tokens: int, timeout: float) -> ProviderResponse:
        payload = {
            "model": model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        data = await post_json(self.http_client, self.name, f"{self.base_url}/v1/messages",
                               self._headers(), payload, timeout)
        return ProviderResponse(provider=self.name, model=model, payload=data)

    async def generate(self, model: str, prompt: str, max_tokens: int) -> ProviderResponse:
        return await self._send(model, prompt, max_tokens, self.timeout_seconds)

    async def analyze_mockup(self, model: str, prompt: str, source: MockupSource,
                             max_tokens: int) -> ProviderResponse:
        image = image_payload(self.name, source)
        if image.is_inline:
            image_block = {
                "type": "image",
                "source": {"type": "base64", "media_type": image.mime_type, "data": image.data},
            }
        else:
            image_block = {"type": "image", "source": {"type": "url", "url": image.url}}

        content: List[Dict[str, Any]] = [image_block, {"type": "text", "text": prompt}]
        return await self._send(model, content, max_tokens, self.vision_timeout_seconds)
