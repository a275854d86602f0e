from __future__ import annotations

import re
from typing import List, Optional

from git import Repo  # type: ignore

from .config import QkprConfig
from .providers.base import TextProvider
from .templates import branch_name_prompt, commit_message_prompt
from .utils.git import get_staged_diff

# Last refreshed from the Gemini model listing; used when the API cannot be asked.
COMMON_MODELS: List[str] = [
    "gemini-2.5-pro",
    "gemini-2.5-flash",
    "gemini-2.5-flash-lite",
    "gemini-2.0-flash",
    "gemini-2.0-flash-001",
    "gemini-2.0-flash-lite",
    "gemini-2.0-flash-lite-001",
    "gemini-2.0-flash-exp",
    "gemini-2.0-pro-exp",
    "gemini-2.0-flash-thinking-exp",
    "gemini-flash-latest",
    "gemini-flash-lite-latest",
    "gemini-pro-latest",
    "gemini-exp-1206",
    "learnlm-2.0-flash-experimental",
    "gemma-3-27b-it",
    "gemma-3-12b-it",
    "gemma-3-4b-it",
    "gemma-3-1b-it",
]


class NoChangesError(Exception):
    """Raised when there are no staged changes to describe."""


def _select_provider(cfg: QkprConfig) -> TextProvider:
    from .providers.gemini import GeminiProvider

    return GeminiProvider(cfg.api_key(), cfg.model())


def _staged_diff_or_raise(repo: Repo) -> str:
    diff = get_staged_diff(repo)
    if not diff.strip():
        raise NoChangesError("no staged changes")
    return diff


def _strip_fences(text: str) -> str:
    text = text.strip()
    m = re.match(r"^```[\w-]*\n(.*?)\n?```$", text, re.S)
    return m.group(1).strip() if m else text


def sanitize_branch_name(raw: str) -> str:
    """Keep the first non-empty line and drop characters git refuses."""
    line = next((ln.strip() for ln in _strip_fences(raw).splitlines() if ln.strip()), "")
    line = line.strip("`'\" ")
    line = re.sub(r"\s+", "-", line)
    line = re.sub(r"[~^:?*\[\\]|\.\.|@\{", "", line)
    return line.strip("/.-")


def generate_commit_message(
    repo: Repo,
    cfg: Optional[QkprConfig] = None,
    provider: Optional[TextProvider] = None,
) -> str:
    cfg = cfg or QkprConfig.load()
    diff = _staged_diff_or_raise(repo)
    provider = provider or _select_provider(cfg)
    text = provider.complete(commit_message_prompt(cfg), f"Git Diff:\n{diff}", action="generate commit message")
    return _strip_fences(text)


def generate_branch_name(
    repo: Repo,
    cfg: Optional[QkprConfig] = None,
    provider: Optional[TextProvider] = None,
) -> str:
    cfg = cfg or QkprConfig.load()
    diff = _staged_diff_or_raise(repo)
    provider = provider or _select_provider(cfg)
    text = provider.complete(branch_name_prompt(cfg), f"Git Diff:\n{diff}", action="generate branch name")
    return sanitize_branch_name(text)


def available_models(cfg: QkprConfig, provider: Optional[TextProvider] = None) -> List[str]:
    """Models offered by the API, falling back to :data:`COMMON_MODELS`."""
    if provider is None and not cfg.api_key():
        return list(COMMON_MODELS)
    provider = provider or _select_provider(cfg)
    return provider.list_models() or list(COMMON_MODELS)
