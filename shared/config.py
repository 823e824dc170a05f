# shared/config.py
import os
from dataclasses import dataclass, field
from typing import Dict, Optional


def _env_int(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").lower() == "true"


@dataclass(frozen=True)
class ProviderCredentials:
    """API key, model and selection priority for one vendor"""
    api_key: Optional[str]
    model: str
    priority: int

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration loaded from the environment"""
    anthropic: ProviderCredentials = field(default_factory=lambda: ProviderCredentials(
        api_key=None, model="claude-3-5-sonnet-20241022", priority=1))
    openai: ProviderCredentials = field(default_factory=lambda: ProviderCredentials(
        api_key=None, model="gpt-4o", priority=2))
    gemini: ProviderCredentials = field(default_factory=lambda: ProviderCredentials(
        api_key=None, model="gemini-2.0-flash", priority=3))

    generation_timeout_seconds: float = 60.0
    vision_timeout_seconds: float = 120.0
    probe_timeout_seconds: float = 10.0

    generation_max_tokens: int = 4000
    analysis_max_tokens: int = 1000
    vision_max_tokens: int = 2000

    circuit_failure_threshold: int = 3
    circuit_recovery_seconds: float = 120.0
    circuit_success_threshold: int = 1

    analyze_mockups_before_generation: bool = True

    log_level: str = "INFO"
    json_logs: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            anthropic=ProviderCredentials(
                api_key=os.getenv("ANTHROPIC_API_KEY"),
                model=os.getenv("ANTHROPIC_MODEL", "claude-3-5-sonnet-20241022"),
                priority=_env_int("ANTHROPIC_PRIORITY", 1),
            ),
            openai=ProviderCredentials(
                api_key=os.getenv("OPENAI_API_KEY"),
                model=os.getenv("OPENAI_MODEL", "gpt-4o"),
                priority=_env_int("OPENAI_PRIORITY", 2),
            ),
            gemini=ProviderCredentials(
                api_key=os.getenv("GEMINI_API_KEY"),
                model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash"),
                priority=_env_int("GEMINI_PRIORITY", 3),
            ),
            generation_timeout_seconds=_env_float("GENERATION_TIMEOUT_SECONDS", 60.0),
            vision_timeout_seconds=_env_float("VISION_TIMEOUT_SECONDS", 120.0),
            probe_timeout_seconds=_env_float("PROBE_TIMEOUT_SECONDS", 10.0),
            generation_max_tokens=_env_int("GENERATION_MAX_TOKENS", 4000),
            analysis_max_tokens=_env_int("ANALYSIS_MAX_TOKENS", 1000),
            vision_max_tokens=_env_int("VISION_MAX_TOKENS", 2000),
            circuit_failure_threshold=_env_int("CIRCUIT_FAILURE_THRESHOLD", 3),
            circuit_recovery_seconds=_env_float("CIRCUIT_RECOVERY_SECONDS", 120.0),
            circuit_success_threshold=_env_int("CIRCUIT_SUCCESS_THRESHOLD", 1),
            analyze_mockups_before_generation=_env_bool("ANALYZE_MOCKUPS_BEFORE_GENERATION", True),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            json_logs=_env_bool("JSON_LOGS", True),
        )

    def provider_credentials(self) -> Dict[str, ProviderCredentials]:
        return {
            "anthropic": self.anthropic,
            "openai": self.openai,
            "gemini": self.gemini,
        }
