# domain/models/mockup_source.py
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from domain.models.errors import ValidationFailure


class MockupType(str, Enum):
    URL = "url"
    FILE_PATH = "file_path"
    BASE64 = "base64"
    S3 = "s3"


# Accepted location prefixes per variant
_LOCATION_RULES: Dict[MockupType, Tuple[Tuple[str, ...], str]] = {
    MockupType.URL: (("http://", "https://"), "Invalid URL format"),
    MockupType.FILE_PATH: (("/", "~"), "Invalid file path"),
    MockupType.BASE64: (("data:image/",), "Invalid base64 image format"),
    MockupType.S3: (("s3://",), "Invalid S3 path"),
}


@dataclass(frozen=True)
class MockupMetadata:
    """Optional descriptive metadata attached to a mockup"""
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MockupMetadata":
        uploaded_at = data.get("uploaded_at")
        if isinstance(uploaded_at, str):
            try:
                uploaded_at = datetime.fromisoformat(uploaded_at)
            except ValueError:
                raise ValidationFailure(f"Invalid uploaded_at timestamp: {uploaded_at!r}")
        elif uploaded_at is not None and not isinstance(uploaded_at, datetime):
            raise ValidationFailure("uploaded_at must be an ISO 8601 string")

        file_size = data.get("file_size")
        # bool is an int subclass
        if file_size is not None and (isinstance(file_size, bool) or not isinstance(file_size, int)
                                      or file_size < 0):
            raise ValidationFailure(f"file_size must be a non-negative integer, got {file_size!r}")

        return cls(
            file_name=data.get("file_name"),
            file_size=file_size,
            mime_type=data.get("mime_type"),
            uploaded_at=uploaded_at,
            description=data.get("description"),
        )


@dataclass(frozen=True)
class MockupSource:
    """Reference to a visual design artifact, validated against its variant"""
    type: MockupType
    location: str
    metadata: Optional[MockupMetadata] = None

    def __post_init__(self):
        try:
            mockup_type = MockupType(self.type)
        except ValueError:
            raise ValidationFailure(f"Unknown mockup type: {self.type!r}")
        # Normalise plain strings to the enum member
        object.__setattr__(self, "type", mockup_type)

        if not isinstance(self.location, str) or not self.location:
            raise ValidationFailure("Mockup location must be a non-empty string")

        prefixes, message = _LOCATION_RULES[mockup_type]
        if not self.location.startswith(prefixes):
            raise ValidationFailure(f"{message}: {self._redacted_location()}")

        if mockup_type == MockupType.BASE64 and not self.location.partition(",")[2]:
            raise ValidationFailure("Inline image carries no data")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MockupSource":
        if "type" not in data or "location" not in data:
            raise ValidationFailure("Mockup source requires 'type' and 'location'")
        metadata = data.get("metadata")
        if metadata and not isinstance(metadata, Mapping):
            raise ValidationFailure("Mockup metadata must be an object")
        return cls(
            type=data["type"],
            location=data["location"],
            metadata=MockupMetadata.from_dict(metadata) if metadata else None,
        )

    @property
    def url(self) -> Optional[str]:
        return self.location if self.type == MockupType.URL else None

    @property
    def local_path(self) -> Optional[str]:
        return self.location if self.type == MockupType.FILE_PATH else None

    def describe(self) -> str:
        """Short human-readable reference, safe to place in prompts and logs"""
        if self.metadata and self.metadata.file_name:
            return f"{self.type.value} - {self.metadata.file_name}"
        return f"{self.type.value} - {self._redacted_location()}"

    def _redacted_location(self) -> str:
        # Inline images can be megabytes long
        if self.location.startswith("data:"):
            return self.location.split(",", 1)[0] + ",..."
        return self.location
