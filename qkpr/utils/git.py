from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Union

from git import Repo  # type: ignore
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError  # type: ignore

REMOTE = "origin"
_REF_FORMAT = "%(refname:short)%09%(committerdate:unix)%09%(committerdate:relative)"


class GitError(Exception):
    """Raised when a git operation the user asked for fails."""


@dataclass
class GitInfo:
    current_branch: str
    remote_url: str
    is_git_repo: bool


@dataclass
class BranchInfo:
    name: str
    last_commit_time: int = 0
    last_commit_time_formatted: str = ""


def open_repo(path: Optional[Union[str, os.PathLike]] = None) -> Repo:
    try:
        return Repo(path or os.getcwd(), search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError) as e:
        raise GitError("Not a Git repository") from e


def try_open_repo(path: Optional[Union[str, os.PathLike]] = None) -> Optional[Repo]:
    try:
        return open_repo(path)
    except GitError:
        return None


def get_git_info(repo: Optional[Repo]) -> GitInfo:
    if repo is None:
        return GitInfo(current_branch="", remote_url="", is_git_repo=False)
    try:
        branch = repo.git.symbolic_ref("--quiet", "--short", "HEAD").strip()
        remote_url = repo.git.config("--get", f"remote.{REMOTE}.url").strip()
    except GitCommandError:
        return GitInfo(current_branch="", remote_url="", is_git_repo=False)
    return GitInfo(current_branch=branch, remote_url=remote_url, is_git_repo=True)


def get_remote_url(repo: Repo) -> Optional[str]:
    try:
        return repo.git.remote("get-url", REMOTE).strip() or None
    except GitCommandError:
        return None


def _clean_branch_line(line: str) -> str:
    name = line.lstrip("*").strip()
    prefix = f"remotes/{REMOTE}/"
    if name.startswith(prefix):
        name = name[len(prefix):]
    return name


def parse_branch_list(output: str) -> List[str]:
    """Parse ``git branch -a`` output into unique, sorted branch names."""
    names = []
    for line in output.splitlines():
        name = _clean_branch_line(line)
        if not name or name == "HEAD" or "->" in name:
            continue
        if name not in names:
            names.append(name)
    return sorted(names)


def get_all_branches(repo: Repo) -> List[str]:
    try:
        return parse_branch_list(repo.git.branch("-a"))
    except GitCommandError:
        return []


def parse_ref_listing(output: str) -> Dict[str, BranchInfo]:
    infos: Dict[str, BranchInfo] = {}
    remote_prefix = f"{REMOTE}/"
    for line in output.splitlines():
        parts = line.split("\t")
        if len(parts) != 3:
            continue
        ref, stamp, relative = parts
        is_remote = ref.startswith(remote_prefix)
        name = ref[len(remote_prefix):] if is_remote else ref
        if name == "HEAD" or not name:
            continue
        # local refs win over their remote-tracking twins
        if is_remote and name in infos:
            continue
        try:
            when = int(stamp)
        except ValueError:
            when = 0
        infos[name] = BranchInfo(name=name, last_commit_time=when, last_commit_time_formatted=relative)
    return infos


def get_branches_with_info(repo: Repo, names: Iterable[str]) -> List[BranchInfo]:
    try:
        listing = repo.git.for_each_ref(f"--format={_REF_FORMAT}", "refs/heads", f"refs/remotes/{REMOTE}")
    except GitCommandError:
        listing = ""
    infos = parse_ref_listing(listing)
    return [infos.get(name, BranchInfo(name=name)) for name in names]


def is_branch_pushed(repo: Repo, branch: str) -> bool:
    try:
        repo.git.rev_parse("--verify", "--quiet", f"refs/remotes/{REMOTE}/{branch}")
    except GitCommandError:
        return False
    return True


def push_branch(repo: Repo, branch: str) -> None:
    try:
        repo.git.push("-u", REMOTE, branch)
    except GitCommandError as e:
        raise GitError(f"Failed to push '{branch}': {e.stderr.strip() or e}") from e


def get_staged_diff(repo: Repo) -> str:
    try:
        return repo.git.diff("--cached").strip()
    except GitCommandError:
        return ""


def has_staged_changes(repo: Repo) -> bool:
    try:
        return bool(repo.git.diff("--cached", "--name-only").strip())
    except GitCommandError:
        return False


def get_commits_between(repo: Repo, target: str, source: str) -> List[str]:
    try:
        out = repo.git.log("--pretty=format:- %s", f"{target}..{source}")
    except GitCommandError:
        return []
    return [line for line in out.strip().splitlines() if line]


def checkout(repo: Repo, branch: str) -> None:
    try:
        repo.git.checkout(branch)
    except GitCommandError as e:
        raise GitError(f"Failed to check out '{branch}': {e.stderr.strip() or e}") from e


def create_branch(repo: Repo, branch: str) -> None:
    try:
        repo.git.checkout("-b", branch)
    except GitCommandError as e:
        raise GitError(f"Failed to create branch '{branch}': {e.stderr.strip() or e}") from e


def commit(repo: Repo, message: str) -> str:
    try:
        return repo.git.commit("-m", message)
    except GitCommandError as e:
        raise GitError(f"git commit failed: {e.stderr.strip() or e}") from e
