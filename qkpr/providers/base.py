from __future__ import annotations

from typing import List


class ProviderError(Exception):
    """The AI provider failed to answer."""


class ProviderConfigError(ProviderError):
    """The AI provider is not usable with the current configuration."""


class TextProvider:
    """Minimal interface for the model used to draft commit messages and branch names."""

    def complete(self, system_prompt: str, content: str, action: str = "generate a response") -> str:  # pragma: no cover - interface
        raise NotImplementedError

    def list_models(self) -> List[str]:  # pragma: no cover - interface
        raise NotImplementedError
