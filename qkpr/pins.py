from __future__ import annotations

import hashlib
import logging
import os
import re
from pathlib import Path
from typing import List, Optional

from git import Repo  # type: ignore

from .config import QkprConfig
from .utils.git import get_remote_url

logger = logging.getLogger(__name__)


def normalize_remote_url(url: str) -> str:
    url = re.sub(r"\.git$", "", url.strip())
    url = re.sub(r"^https?://", "", url)
    url = re.sub(r"^git@", "", url)
    return url.replace(":", "/").lower()


def repository_id(remote_url: Optional[str], cwd: Optional[str] = None) -> str:
    """Short stable id for a repository: its origin URL, else its directory."""
    key = normalize_remote_url(remote_url) if remote_url else (cwd or os.getcwd())
    return hashlib.md5(key.encode("utf-8")).hexdigest()[:12]


class PinStore:
    """Pinned branches of one repository, persisted in the user config."""

    def __init__(self, repo_id: str, path: Optional[Path] = None) -> None:
        self.repo_id = repo_id
        self.path = path

    @classmethod
    def for_repo(cls, repo: Optional[Repo], path: Optional[Path] = None) -> "PinStore":
        remote = get_remote_url(repo) if repo is not None else None
        cwd = repo.working_tree_dir if repo is not None else None
        return cls(repository_id(remote, cwd), path)

    def get(self) -> List[str]:
        cfg = QkprConfig.load(self.path)
        pinned = cfg.repository_pinned_branches.get(self.repo_id)
        if pinned is not None:
            return list(pinned)
        if cfg.pinned_branches:
            logger.debug("migrating global pinned branches to repository %s", self.repo_id)
            cfg.repository_pinned_branches[self.repo_id] = list(cfg.pinned_branches)
            cfg.pinned_branches = None
            cfg.save(self.path)
            return list(cfg.repository_pinned_branches[self.repo_id])
        return []

    def is_pinned(self, branch: str) -> bool:
        return branch in self.get()

    def add(self, branch: str) -> None:
        pinned = self.get()
        if branch in pinned:
            return
        cfg = QkprConfig.load(self.path)
        cfg.repository_pinned_branches[self.repo_id] = pinned + [branch]
        cfg.save(self.path)

    def remove(self, branch: str) -> None:
        cfg = QkprConfig.load(self.path)
        pinned = cfg.repository_pinned_branches.get(self.repo_id)
        if not pinned or branch not in pinned:
            return
        pinned.remove(branch)
        cfg.repository_pinned_branches[self.repo_id] = pinned
        cfg.save(self.path)

    def toggle(self, branch: str) -> bool:
        """Flip the pin of ``branch``; return whether it is pinned afterwards."""
        if self.is_pinned(branch):
            self.remove(branch)
            return False
        self.add(branch)
        return True

    def clear(self) -> None:
        cfg = QkprConfig.load(self.path)
        if cfg.repository_pinned_branches.pop(self.repo_id, None) is not None:
            cfg.save(self.path)
