# infrastructure/providers/gemini_provider.py
from typing import Any, Dict, List, Optional

import httpx

from domain.models.mockup_source import MockupSource
from domain.ports.ai_provider import ProviderResponse
from infrastructure.providers.http import image_payload, post_json, probe
from infrastructure.providers.parsing import TextResponseParser
from infrastructure.providers.pricing import GEMINI_PRICING


def extract_text(payload: Dict[str, Any]) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = candidates[0].get("content", {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


def extract_total_tokens(payload: Dict[str, Any]) -> Optional[int]:
    usage = payload.get("usageMetadata") or payload.get("usage_metadata")
    if not usage:
        return None
    total = usage.get("totalTokenCount", usage.get("total_token_count"))
    return int(total) if total is not None else None


class GeminiProvider:
    """Generative Language API adapter"""

    name = "gemini"
    supports_vision = True

    def __init__(self, api_key: str, http_client: httpx.AsyncClient,
                 model: str = "gemini-2.0-flash", priority: int = 3,
                 timeout_seconds: float = 60.0, vision_timeout_seconds: float = 120.0,
                 probe_timeout_seconds: float = 10.0, temperature: float = 0.7,
                 base_url: str = "https://generativelanguage.googleapis.com"):
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
        self.cost_calculator = GEMINI_PRICING

    def _headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    async def is_available(self) -> bool:
        if not self.api_key:
            return False
        return await probe(self.http_client, f"{self.base_url}/v1beta/models",
                           self._headers(), self.probe_timeout_seconds)

    async def _send(self, model: str, parts: List[Dict[str, Any]], max_tokens: int,
                    timeout: float) -> ProviderResponse:
        payload = {
            "contents": [{"parts": parts}],
            "generationConfig": {"maxOutputTokens": max_tokens, "temperature": self.temperature},
        }
        data = await post_json(self.http_client, self.name,
                               f"{self.base_url}/v1beta/models/{model}:generateContent",
                               self._headers(), payload, timeout)
        return ProviderResponse(provider=self.name, model=model, payload=data)

    async def generate(self, model: str, prompt: str, max_tokens: int) -> ProviderResponse:
        return await self._send(model, [{"text": prompt}], max_tokens, self.timeout_seconds)

    async def analyze_mockup(self, model: str, prompt: str, source: MockupSource,
                             max_tokens: int) -> ProviderResponse:
        image = image_payload(self.name, source)
        if image.is_inline:
            image_part = {"inline_data": {"mime_type": image.mime_type, "data": image.data}}
        else:
            mime_type = (source.metadata.mime_type if source.metadata else None) or "image/png"
            image_part = {"file_data": {"mime_type": mime_type, "file_uri": image.url}}
        return await self._send(model, [{"text": prompt}, image_part], max_tokens,
                                self.vision_timeout_seconds)
