# infrastructure/providers/http.py
import base64
import mimetypes
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from domain.models.errors import ProviderUnavailable, ValidationFailure
from domain.models.mockup_source import MockupSource, MockupType

MAX_ERROR_BODY_CHARS = 500
DEFAULT_IMAGE_MIME = "image/png"


async def post_json(client: httpx.AsyncClient, provider: str, url: str,
                    headers: Dict[str, str], payload: Dict[str, Any],
                    timeout: float, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """POST a JSON body and return the decoded JSON object.

    Network errors, non-2xx statuses and undecodable bodies all surface as
    ProviderUnavailable so the caller can fall back to the next provider.
    """
    try:
        response = await client.post(url, headers=headers, json=payload,
                                     params=params, timeout=timeout)
    except httpx.TimeoutException as e:
        raise ProviderUnavailable(provider, f"request timed out after {timeout}s") from e
    except httpx.HTTPError as e:
        raise ProviderUnavailable(provider, f"network error: {e}") from e

    if not response.is_success:
        raise ProviderUnavailable(
            provider,
            f"API error {response.status_code}: {response.text[:MAX_ERROR_BODY_CHARS]}"
        )

    try:
        data = response.json()
    except ValueError as e:
        raise ProviderUnavailable(provider, f"invalid JSON response: {response.text[:200]}") from e

    if not isinstance(data, dict):
        raise ProviderUnavailable(provider, "unexpected response shape")

    return data


async def probe(client: httpx.AsyncClient, url: str, headers: Dict[str, str],
                timeout: float, params: Optional[Dict[str, str]] = None) -> bool:
    """Cheap authenticated GET used as an availability check"""
    try:
        response = await client.get(url, headers=headers, params=params, timeout=timeout)
    except httpx.HTTPError:
        return False
    return response.is_success


@dataclass(frozen=True)
class ImagePayload:
    """Image reference in the form vendors accept: a fetchable URL or inline base64"""
    url: Optional[str] = None
    mime_type: Optional[str] = None
    data: Optional[str] = None

    @property
    def is_inline(self) -> bool:
        return self.data is not None

    @property
    def data_uri(self) -> str:
        if self.is_inline:
            return f"data:{self.mime_type};base64,{self.data}"
        return self.url or ""


def inline_file_source(source: MockupSource) -> MockupSource:
    """Read a local mockup into an inline base64 source.

    An unreadable or empty file is the caller's error, not the provider's.
    """
    path = os.path.expanduser(source.location)
    mime_type = (source.metadata.mime_type if source.metadata and source.metadata.mime_type
                 else mimetypes.guess_type(path)[0])
    if not mime_type or not mime_type.startswith("image/"):
        mime_type = DEFAULT_IMAGE_MIME

    try:
        with open(path, "rb") as handle:
            data = base64.b64encode(handle.read()).decode("ascii")
    except OSError as e:
        raise ValidationFailure(f"Cannot read mockup file {source.location}: {e.strerror or e}") from e
    if not data:
        raise ValidationFailure(f"Mockup file is empty: {source.location}")

    return MockupSource(type=MockupType.BASE64, location=f"data:{mime_type};base64,{data}",
                        metadata=source.metadata)


def image_payload(provider: str, source: MockupSource) -> ImagePayload:
    """Resolve a mockup source into an ImagePayload.

    Files are read and inlined by inline_file_source; the image itself is never decoded.
    Object-store references must be resolved to URLs before reaching here.
    """
    if source.type == MockupType.URL:
        return ImagePayload(url=source.location)

    if source.type == MockupType.BASE64:
        header, _, data = source.location.partition(",")
        mime_type = header[len("data:"):].split(";", 1)[0] or DEFAULT_IMAGE_MIME
        return ImagePayload(mime_type=mime_type, data=data)

    if source.type == MockupType.FILE_PATH:
        return image_payload(provider, inline_file_source(source))

    raise ProviderUnavailable(provider, f"unsupported mockup source for vision call: {source.describe()}")
