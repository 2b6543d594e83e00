"""Git data extraction: run the git executable, parse its text output into records."""

from __future__ import annotations

import functools
import os
import shutil
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Callable, Optional

from gitwrap.config import GitwrapSettings
from gitwrap.errors import InvocationError, ParseError, ToolUnavailableError
from gitwrap.log import get_logger

log = get_logger(__name__)

# Six fixed fields, then the body (which may span many lines)
COMMIT_FIELDS = 6
# Hash, author name, author email, timestamp
REQUIRED_COMMIT_FIELDS = 4
REFS_FORMAT = "--format='%(refname)'"


@dataclass(frozen=True)
class Commit:
    hash: str
    author: str
    author_email: str
    parent_hash: str
    timestamp: int
    subject: str
    body: str = ""

    @property
    def parents(self) -> tuple[str, ...]:
        """Parent ids in git's order; empty for a root commit."""
        return tuple(self.parent_hash.split())

    @property
    def first_parent(self) -> str:
        parents = self.parents
        return parents[0] if parents else ""

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    def to_dict(self) -> dict:
        return asdict(self)

    def __str__(self) -> str:
        return (
            f"+ Commit: {self.hash}\n"
            f"| Author: {self.author} <{self.author_email}>\n"
            f"| Parent: {self.parent_hash}\n"
            f"| Timestamp: {self.timestamp}\n"
            f"| Subject: {self.subject}\n"
            f"| Body: {self.body}"
        )


# ── Process invocation ────────────────────────────────────────────────


class GitEnvironment:
    """A located git executable plus the settings every call runs with.

    Build one with :meth:`detect` at startup and pass it around. Detection
    raises ToolUnavailableError once, instead of every operation re-checking.
    """

    def __init__(self, executable: str, settings: Optional[GitwrapSettings] = None) -> None:
        self.executable = executable
        self.settings = settings or GitwrapSettings()

    @classmethod
    def detect(cls, settings: Optional[GitwrapSettings] = None) -> GitEnvironment:
        settings = settings or GitwrapSettings()
        executable = shutil.which(settings.git_executable)
        if executable is None:
            log.error("git_unavailable", executable=settings.git_executable)
            raise ToolUnavailableError(settings.git_executable)
        return cls(executable, settings)

    def run(self, args: list[str], cwd: str) -> str:
        """Run git with args in cwd and return stdout.

        Raises InvocationError on a non-zero exit, a failed start or a
        timeout. stderr is attached to the error untouched.
        """
        log.debug("git_invocation", args=args, cwd=cwd)
        try:
            result = subprocess.run(
                [self.executable] + args,
                cwd=cwd,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.settings.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise InvocationError(args, cwd, reason=f"timed out after {e.timeout}s") from e
        except OSError as e:
            raise InvocationError(args, cwd, reason=str(e)) from e

        if result.returncode != 0:
            log.debug("git_invocation_failed", args=args, cwd=cwd, returncode=result.returncode)
            raise InvocationError(args, cwd, returncode=result.returncode, stderr=result.stderr)
        return result.stdout

    def probe(self, args: list[str], cwd: str) -> bool:
        """True when the invocation succeeds; its output is ignored."""
        try:
            self.run(args, cwd)
        except InvocationError:
            return False
        return True


@functools.lru_cache(maxsize=None)
def default_environment() -> GitEnvironment:
    """Process-wide environment, detected on first use."""
    return GitEnvironment.detect()


def resolve_env(env: Optional[GitEnvironment]) -> GitEnvironment:
    return env if env is not None else default_environment()


# ── Parsers ───────────────────────────────────────────────────────────


def _drop_trailing_empty(lines: list[str]) -> list[str]:
    """Drop the empty element a terminal newline leaves after split()."""
    if lines and lines[-1].strip() == "":
        return lines[:-1]
    return lines


def _unquote(value: str) -> str:
    """Strip whitespace and exactly one layer of matching quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"":
        value = value[1:-1].strip()
    return value


def parse_refs(raw: str) -> list[str]:
    """Parse `git for-each-ref` output into ref names, order unchanged.

    >>> parse_refs("'refs/heads/a'\\n'refs/heads/b'\\n")
    ['refs/heads/a', 'refs/heads/b']
    """
    return [_unquote(line) for line in _drop_trailing_empty(raw.split("\n"))]


def parse_hashes(raw: str) -> list[str]:
    """Parse one-id-per-line enumeration output."""
    return [line.strip() for line in _drop_trailing_empty(raw.split("\n"))]


def parse_commit(raw: str) -> Commit:
    """Parse one `%H%n%an%n%ae%n%ct%n%P%n%s%n%b` block into a Commit.

    Everything after the sixth line is the body, rejoined with newlines.
    Only hash through timestamp are required: a root commit with an empty
    subject and body may end right after the timestamp line.
    """
    lines = raw.split("\n")
    if len(lines) < REQUIRED_COMMIT_FIELDS:
        raise ParseError(f"expected at least {REQUIRED_COMMIT_FIELDS} lines, got {len(lines)}", raw)
    lines += [""] * (COMMIT_FIELDS - len(lines))

    commit_hash = lines[0].strip()
    if not commit_hash:
        raise ParseError("missing commit hash", raw)

    ts_field = lines[3].strip()
    try:
        timestamp = int(ts_field)
    except ValueError as e:
        raise ParseError(f"timestamp is not an integer: {ts_field!r}", raw) from e

    return Commit(
        hash=commit_hash,
        author=lines[1].strip(),
        author_email=lines[2].strip(),
        timestamp=timestamp,
        parent_hash=lines[4].strip(),
        subject=lines[5].strip(),
        body="\n".join(lines[COMMIT_FIELDS:]).strip(),
    )


def parse_history(
    raw_listing: str,
    resolve: Callable[[str], Commit],
    *,
    workers: int = 1,
) -> list[Commit]:
    """Turn an id listing into Commits, resolving each id with `resolve`.

    The result has one Commit per id, in listing order. The first failure
    propagates and no partial history is returned.
    """
    hashes = parse_hashes(raw_listing)
    if workers > 1 and len(hashes) > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            # map() yields in submission order and re-raises the first error
            commits = list(executor.map(resolve, hashes))
    else:
        commits = [resolve(h) for h in hashes]
    log.debug("history_resolved", count=len(commits))
    return commits


# ── Repository operations ─────────────────────────────────────────────


def is_repo(path: str, *, env: Optional[GitEnvironment] = None) -> bool:
    """True if git recognises path as (inside) a repository."""
    return resolve_env(env).probe(["rev-parse", "--git-dir"], path)


def is_bare_repo(path: str, *, env: Optional[GitEnvironment] = None) -> bool:
    env = resolve_env(env)
    if not is_repo(path, env=env):
        return False
    out = env.run(["rev-parse", "--is-bare-repository"], path)
    return "true" in out


def clone(
    source: str,
    dest: str,
    bare: bool = False,
    *,
    env: Optional[GitEnvironment] = None,
) -> bool:
    """Clone source (path or URL) into dest.

    Returns False without touching anything when dest already exists.
    """
    env = resolve_env(env)
    if os.path.lexists(dest):
        log.info("clone_skipped", source=source, dest=dest)
        return False

    args = ["clone"]
    if bare:
        args.append("--bare")
    args += [source, dest]
    log.info("clone_started", source=source, dest=dest, bare=bare)
    # git creates any missing leading directories of dest
    env.run(args, os.getcwd())
    return True


def current_branch(path: str, *, env: Optional[GitEnvironment] = None) -> str:
    """Active branch name, or "HEAD" when detached."""
    return resolve_env(env).run(["rev-parse", "--abbrev-ref", "HEAD"], path).strip()


def make_branch(
    path: str,
    new_branch: str,
    source_branch: str = "",
    *,
    env: Optional[GitEnvironment] = None,
) -> None:
    """Create a local branch, from source_branch when given."""
    args = ["branch", new_branch]
    if source_branch:
        args.append(source_branch)
    resolve_env(env).run(args, path)


def checkout(path: str, revision: str, *, env: Optional[GitEnvironment] = None) -> None:
    """Switch branches, or detach at a revision."""
    resolve_env(env).run(["checkout", revision], path)


def list_branches(
    path: str,
    local: bool = True,
    *,
    env: Optional[GitEnvironment] = None,
) -> list[str]:
    """Fully qualified local (refs/heads) or remote-tracking (refs/remotes) refs."""
    namespace = "refs/heads" if local else "refs/remotes"
    return parse_refs(resolve_env(env).run(["for-each-ref", REFS_FORMAT, namespace], path))


def _commit_format(env: GitEnvironment) -> str:
    ts = env.settings.timestamp_placeholder
    return f"%H%n%an%n%ae%n{ts}%n%P%n%s%n%b"


def get_commit(
    path: str,
    revision: str = "HEAD",
    *,
    env: Optional[GitEnvironment] = None,
) -> Commit:
    """Resolve a single revision to a Commit."""
    env = resolve_env(env)
    out = env.run(["log", "-1", f"--pretty=format:{_commit_format(env)}", revision, "--"], path)
    return parse_commit(out)


def get_log(
    path: str,
    revision: str = "",
    *,
    env: Optional[GitEnvironment] = None,
    max_count: Optional[int] = None,
    author: Optional[str] = None,
    since: Optional[str] = None,
    until: Optional[str] = None,
    workers: Optional[int] = None,
) -> list[Commit]:
    """History newest-first, like `git log`.

    Ids are listed first, then each id is resolved with get_commit. Leave
    revision empty for the default history from HEAD.
    """
    env = resolve_env(env)
    args = ["log", "--pretty=format:%H"]
    if max_count is not None:
        args.append(f"--max-count={max_count}")
    if author:
        args.append(f"--author={author}")
    if since:
        args.append(f"--since={since}")
    if until:
        args.append(f"--until={until}")
    if revision:
        args.append(revision)
    args.append("--")

    listing = env.run(args, path)
    if not listing.strip():
        return []

    if workers is None:
        workers = env.settings.history_workers
    return parse_history(
        listing,
        lambda h: get_commit(path, h, env=env),
        workers=workers,
    )
