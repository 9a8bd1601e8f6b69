"""Factory for building the extraction provider chain from configuration.

Implements Factory Pattern for provider selection with registry pattern for extensibility.

Based on:
- Factory Pattern: https://refactoring.guru/design-patterns/factory-method/python
- Registry Pattern: Python Cookbook 3rd Edition, Recipe 9.22
"""

import logging

from voiceflow.extraction.base import ExtractionProvider
from voiceflow.extraction.mock_provider import MockExtractionProvider
from voiceflow.extraction.openai_provider import OpenAIExtractionProvider
from voiceflow.extraction.prompts import PromptBuilder
from voiceflow.extraction.sealion_provider import SeaLionExtractionProvider
from voiceflow.shared.config import Settings

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry of available extraction providers.

    Maintains a mapping of provider names to their implementation classes.
    Supports runtime registration of new providers.
    """

    _providers: dict[str, type[ExtractionProvider]] = {
        "sealion": SeaLionExtractionProvider,
        "openai": OpenAIExtractionProvider,
        "mock": MockExtractionProvider,
    }

    @classmethod
    def register(cls, name: str, provider_class: type[ExtractionProvider]) -> None:
        """Register a new provider.

        Args:
            name: Provider identifier (as used in Settings.extraction_chain)
            provider_class: Provider class implementing ExtractionProvider interface
        """
        cls._providers[name] = provider_class
        logger.info(f"Registered extraction provider: {name}")

    @classmethod
    def get_provider_class(cls, name: str) -> type[ExtractionProvider]:
        """Get provider class by name.

        Raises:
            ValueError: If provider not found in registry
        """
        if name not in cls._providers:
            available = ", ".join(cls._providers.keys())
            raise ValueError(
                f"Unknown extraction provider: '{name}'. " f"Available providers: {available}"
            )
        return cls._providers[name]

    @classmethod
    def list_providers(cls) -> list[str]:
        return list(cls._providers.keys())


def create_provider_chain(
    settings: Settings, prompt_builder: PromptBuilder | None = None
) -> list[ExtractionProvider]:
    """Build the ordered extraction chain from settings.extraction_chain.

    Stages that are not configured are still included (they fail fast at call
    time) and a warning is logged for each.

    Args:
        settings: Application settings
        prompt_builder: Prompt builder shared by all stages

    Returns:
        Providers in the order they should be attempted

    Raises:
        ValueError: If a configured provider is unknown

    Example:
        >>> settings = Settings(extraction_chain=["openai"])
        >>> chain = create_provider_chain(settings)
        >>> [provider.provider_name for provider in chain]
        ['openai']
    """
    prompt_builder = prompt_builder or PromptBuilder()
    chain = []
    for name in settings.extraction_chain:
        provider = ProviderRegistry.get_provider_class(name)(settings, prompt_builder)
        if not provider.is_available():
            logger.warning(
                f"Extraction provider '{name}' is not fully available. "
                f"Check configuration (e.g., API keys, feature flags)."
            )
        chain.append(provider)

    logger.info(f"Created extraction chain: {' -> '.join(settings.extraction_chain)} -> mock")
    return chain
