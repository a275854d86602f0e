"""User configuration stored as JSON in ``~/.qkpr/config.json``.

Keys use the same camelCase names as earlier releases so existing files keep
working. Environment variables fill in the API key and model when the file
leaves them unset.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.0-flash"
DEFAULT_LANGUAGE = "zh"
LANGUAGES = ("en", "zh")

_FIELDS = {
    "gemini_api_key": "geminiApiKey",
    "gemini_model": "geminiModel",
    "prompt_language": "promptLanguage",
    "custom_commit_message_prompt": "customCommitMessagePrompt",
    "custom_branch_name_prompt": "customBranchNamePrompt",
    "pinned_branches": "pinnedBranches",
    "repository_pinned_branches": "repositoryPinnedBranches",
}


class ConfigError(Exception):
    """Raised when the configuration file cannot be written."""


def config_dir() -> Path:
    override = os.getenv("QKPR_CONFIG_DIR")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".qkpr"


def config_path() -> Path:
    return config_dir() / "config.json"


@dataclass
class QkprConfig:
    gemini_api_key: Optional[str] = None
    gemini_model: Optional[str] = None
    prompt_language: Optional[str] = None
    custom_commit_message_prompt: Optional[str] = None
    custom_branch_name_prompt: Optional[str] = None
    # deprecated global list, moved per repository on first read
    pinned_branches: Optional[List[str]] = None
    repository_pinned_branches: Dict[str, List[str]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "QkprConfig":
        kwargs: Dict[str, Any] = {}
        for attr, key in _FIELDS.items():
            if key in raw and raw[key] is not None:
                kwargs[attr] = raw[key]
        repo_pins = kwargs.get("repository_pinned_branches")
        if not isinstance(repo_pins, dict):
            kwargs.pop("repository_pinned_branches", None)
        else:
            kwargs["repository_pinned_branches"] = {
                str(k): [str(b) for b in v] for k, v in repo_pins.items() if isinstance(v, list)
            }
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "QkprConfig":
        path = path or config_path()
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return cls()
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable config %s: %s", path, e)
            return cls()
        if not isinstance(raw, dict):
            logger.warning("Ignoring config %s: expected a JSON object", path)
            return cls()
        return cls.from_dict(raw)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for attr, key in _FIELDS.items():
            value = getattr(self, attr)
            if value is None or value == {}:
                continue
            out[key] = value
        return out

    def save(self, path: Optional[Path] = None) -> Path:
        path = path or config_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(self.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to save config to {path}: {e}") from e
        return path

    # resolved values -------------------------------------------------

    def api_key(self) -> Optional[str]:
        return self.gemini_api_key or os.getenv("QUICK_PR_GEMINI_API_KEY") or os.getenv("GEMINI_API_KEY")

    def model(self) -> str:
        return (
            self.gemini_model
            or os.getenv("QUICK_PR_GEMINI_MODEL")
            or os.getenv("GEMINI_MODEL")
            or DEFAULT_MODEL
        )

    def language(self) -> str:
        lang = (self.prompt_language or DEFAULT_LANGUAGE).lower()
        return lang if lang in LANGUAGES else DEFAULT_LANGUAGE


def update_config(path: Optional[Path] = None, **changes: Any) -> QkprConfig:
    """Load, apply ``changes`` and save in one step."""
    cfg = QkprConfig.load(path)
    for key, value in changes.items():
        if key not in _FIELDS:
            raise ConfigError(f"Unknown config field: {key}")
        setattr(cfg, key, value)
    cfg.save(path)
    return cfg
