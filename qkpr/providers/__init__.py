from .base import ProviderConfigError, ProviderError, TextProvider

__all__ = ["ProviderConfigError", "ProviderError", "TextProvider"]
