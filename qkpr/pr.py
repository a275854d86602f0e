from __future__ import annotations

import re
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import quote

from git import Repo  # type: ignore

from .utils.git import checkout, create_branch, get_commits_between

_REMOTE_PATTERNS = (
    ("git@", "https", re.compile(r"^git@([^:]+):(.+?)(?:\.git)?$")),
    ("ssh://git@", "https", re.compile(r"^ssh://git@([^/]+)/(.+?)(?:\.git)?$")),
    ("https://", "https", re.compile(r"^https://([^/]+)/(.+?)(?:\.git)?$")),
    ("http://", "http", re.compile(r"^http://([^/]+)/(.+?)(?:\.git)?$")),
)


@dataclass
class RemoteInfo:
    host: str
    repo_path: str
    protocol: str = "https"


@dataclass
class PRInfo:
    source_branch: str
    target_branch: str
    pr_url: str
    pr_message: str
    merge_branch_name: str


def parse_remote_url(remote: str) -> Optional[RemoteInfo]:
    remote = remote.strip()
    for prefix, protocol, pattern in _REMOTE_PATTERNS:
        if remote.startswith(prefix):
            m = pattern.match(remote)
            if not m:
                return None
            return RemoteInfo(host=m.group(1), repo_path=m.group(2), protocol=protocol)
    return None


def generate_pr_url(remote: RemoteInfo, source: str, target: str) -> str:
    base = f"{remote.protocol}://{remote.host}/{remote.repo_path}"
    if "github.com" in remote.host:
        return f"{base}/compare/{target}...{source}"
    # GitLab and Gitee
    return (
        f"{base}/merge_requests/new"
        f"?merge_request%5Bsource_branch%5D={quote(source, safe='')}"
        f"&merge_request%5Btarget_branch%5D={quote(target, safe='')}"
    )


def format_pr_message(source: str, target: str, commits: List[str]) -> str:
    message = f"### 🔧 PR: `{source}` → `{target}`\n\n#### 📝 Commit Summary:\n"
    if not commits:
        return message + "\n(no differing commits)"
    return message + "\n".join(commits)


def generate_pr_message(repo: Repo, source: str, target: str) -> str:
    return format_pr_message(source, target, get_commits_between(repo, target, source))


def generate_merge_branch_name(source: str, target: str) -> str:
    return f"merge/{source.replace('/', '-')}-to-{target.replace('/', '-')}"


def create_pull_request(repo: Repo, source: str, target: str, remote_url: str) -> Optional[PRInfo]:
    remote = parse_remote_url(remote_url)
    if remote is None:
        return None
    return PRInfo(
        source_branch=source,
        target_branch=target,
        pr_url=generate_pr_url(remote, source, target),
        pr_message=generate_pr_message(repo, source, target),
        merge_branch_name=generate_merge_branch_name(source, target),
    )


def create_merge_branch(repo: Repo, target: str, merge_branch: str) -> None:
    """Check out ``target`` and branch ``merge_branch`` off it."""
    checkout(repo, target)
    create_branch(repo, merge_branch)


def _clipboard_command() -> Optional[List[str]]:
    if sys.platform == "darwin":
        return ["pbcopy"]
    if sys.platform == "win32":
        return ["clip"]
    if shutil.which("xclip"):
        return ["xclip", "-selection", "clipboard"]
    if shutil.which("wl-copy"):
        return ["wl-copy"]
    return None


def copy_to_clipboard(text: str) -> bool:
    cmd = _clipboard_command()
    if cmd is None:
        return False
    try:
        res = subprocess.run(cmd, input=text, text=True, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError:
        return False
    return res.returncode == 0
