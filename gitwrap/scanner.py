"""Repo discovery: recursively find git repositories under a directory."""

from __future__ import annotations

import enum
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Optional

from gitwrap.git import GitEnvironment, is_repo, resolve_env
from gitwrap.log import get_logger

log = get_logger(__name__)


class WalkDecision(enum.Enum):
    DESCEND = "descend"
    RECORD_AND_STOP = "record_and_stop"
    SKIP = "skip"


def classify(
    path: str,
    env: Optional[GitEnvironment] = None,
    exclude: Iterable[str] = (),
) -> WalkDecision:
    """Decide what the walk does with a single directory."""
    if os.path.basename(path) in exclude:
        return WalkDecision.SKIP
    # Symlinks are never followed, so the walk cannot cycle
    if os.path.islink(path) or not os.path.isdir(path):
        return WalkDecision.SKIP
    if is_repo(path, env=env):
        return WalkDecision.RECORD_AND_STOP
    return WalkDecision.DESCEND


def _subdirs(path: str) -> list[str]:
    """Immediate subdirectories of path in lexical order; [] if unreadable."""
    try:
        with os.scandir(path) as it:
            names = []
            for entry in it:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        names.append(entry.name)
                except OSError:
                    continue
    except OSError as e:
        log.warning("walk_listing_failed", path=path, error=str(e))
        return []
    return [os.path.join(path, name) for name in sorted(names)]


def find_repos(
    start: str,
    *,
    env: Optional[GitEnvironment] = None,
    workers: Optional[int] = None,
    exclude: Iterable[str] = (),
    max_depth: Optional[int] = None,
) -> list[str]:
    """Find every repository root at or below start, depth-first.

    start itself is reported when it is a repository. Directories are
    visited in lexical order and never entered once recognised as a
    repository, so no result lies inside another. Unreadable subtrees are
    logged and skipped.

    With workers > 1 the probes of sibling directories run in parallel;
    the result order is the same as for a sequential walk.
    """
    env = resolve_env(env)
    if workers is None:
        workers = env.settings.walk_workers
    exclude = frozenset(exclude)
    start = os.path.abspath(os.path.expanduser(start))
    repos: list[str] = []

    def _record(path: str) -> None:
        log.debug("repo_found", path=path)
        repos.append(path)

    # start may be a symlink and may carry an excluded name
    if not os.path.isdir(start):
        return repos
    if is_repo(start, env=env):
        _record(start)
        return repos

    def _probe(path: str) -> WalkDecision:
        return classify(path, env, exclude)

    def _walk(path: str, depth: int, executor: Optional[ThreadPoolExecutor]) -> None:
        if max_depth is not None and depth > max_depth:
            return
        children = _subdirs(path)
        if executor is not None and len(children) > 1:
            decisions = list(executor.map(_probe, children))
        else:
            decisions = [_probe(child) for child in children]

        for child, decision in zip(children, decisions):
            if decision is WalkDecision.RECORD_AND_STOP:
                _record(child)
            elif decision is WalkDecision.DESCEND:
                _walk(child, depth + 1, executor)

    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            _walk(start, 1, executor)
    else:
        _walk(start, 1, None)
    return repos
