#!/usr/bin/env python3
"""
Provider check for the PRD Generation Engine
Run this to see which AI providers are configured and reachable before starting the API server
"""

import asyncio
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx

from infrastructure.providers.factory import build_provider_registry
from shared.config import Settings
from shared.logging import setup_logging


async def check_providers(settings: Settings) -> bool:
    """Probe every configured provider in selection order"""
    async with httpx.AsyncClient() as http_client:
        registry = build_provider_registry(settings, http_client)
        if not len(registry):
            print("❌ No providers configured. Set ANTHROPIC_API_KEY, OPENAI_API_KEY or GEMINI_API_KEY.")
            return False

        statuses = await registry.list_available_providers()

    for status in statuses:
        marker = "✅" if status.is_available else "❌"
        print(f"{marker} {status.name} (priority {status.priority}) - "
              f"{', '.join(status.capabilities)}")

    return any(status.is_available for status in statuses)


def main():
    """Run the provider check"""
    print("🚀 PRD Generation Engine - Provider Check")
    print("=" * 42)
    print()

    settings = Settings.from_env()
    setup_logging(level="WARNING", json_logs=False)

    for name, credentials in settings.provider_credentials().items():
        state = "configured" if credentials.configured else "missing API key"
        print(f"   {name}: model={credentials.model} priority={credentials.priority} ({state})")
    print()

    if asyncio.run(check_providers(settings)):
        print()
        print("🎉 At least one provider is reachable!")
        print()
        print("📋 Start the API server:")
        print("   python3 main.py")
        print("   curl http://localhost:8000/prd/providers")
        return 0

    print()
    print("❌ No reachable providers. Please check the errors above.")
    return 1


if __name__ == "__main__":
    sys.exit(main())
