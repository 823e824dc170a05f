# infrastructure/providers/openai_provider.py
from typing import Any, Dict, Optional

import httpx

from domain.models.mockup_source import MockupSource
from domain.ports.ai_provider import ProviderResponse
from infrastructure.providers.http import image_payload, post_json, probe
from infrastructure.providers.parsing import TextResponseParser
from infrastructure.providers.pricing import OPENAI_PRICING


def extract_text(payload: Dict[str, Any]) -> str:
    choices = payload.get("choices") or []
    if not choices:
        return ""
    content = choices[0]["message"].get("content") or ""
    # Compatible gateways may return a list of typed parts instead of a string
    if isinstance(content, list):
        return "\n".join(part["text"] for part in content
                         if isinstance(part, dict) and part.get("text"))
    return str(content)


def extract_total_tokens(payload: Dict[str, Any]) -> Optional[int]:
    usage = payload.get("usage")
    if not usage:
        return None
    if usage.get("total_tokens") is not None:
        return int(usage["total_tokens"])
    return int(usage.get("prompt_tokens", 0)) + int(usage.get("completion_tokens", 0))


class OpenAIProvider:
    """Chat Completions API adapter"""

    name = "openai"
    supports_vision = True

    def __init__(self, api_key: str, http_client: httpx.AsyncClient,
                 model: str = "gpt-4o", priority: int = 2,
                 timeout_seconds: float = 60.0, vision_timeout_seconds: float = 120.0,
                 probe_timeout_seconds: float = 10.0, temperature: float = 0.7,
                 base_url: str = "https://api.openai.com"):
        self.api_key = api_key
        self.http_client = http_client
        self.model = model
        self.priority = priority
        self.timeout_seconds = timeout_seconds
        self.vision_timeout_seconds = vision_timeout_seconds
        self.probe_timeout_seconds = probe_timeout_seconds
        self.temperature = temperature
        self.base_url = base_url.rstrip("/")
        self.parser = TextResponseParser(self.name, extract_text, extract_total_tokens)
        self.cost_calculator = OPENAI_PRICING

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
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
            "messages": [{"role": "user", "content": content}],
            "max_tokens": max_tokens,
            "temperature": self.temperature,
        }
        data = await post_json(self.http_client, self.name, f"{self.base_url}/v1/chat/completions",
                               self._headers(), payload, timeout)
        return ProviderResponse(provider=self.name, model=model, payload=data)

    async def generate(self, model: str, prompt: str, max_tokens: int) -> ProviderResponse:
        return await self._send(model, prompt, max_tokens, self.timeout_seconds)

    async def analyze_mockup(self, model: str, prompt: str, source: MockupSource,
                             max_tokens: int) -> ProviderResponse:
        image = image_payload(self.name, source)
        content = [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": image.data_uri}},
        ]
        return await self._send(model, content, max_tokens, self.vision_timeout_seconds)
