"""gitwrap: discover, clone and inspect git repositories from Python."""

__version__ = "0.3.0"

from gitwrap.config import GitwrapSettings
from gitwrap.errors import GitwrapError, InvocationError, ParseError, ToolUnavailableError
from gitwrap.git import (
    Commit,
    GitEnvironment,
    checkout,
    clone,
    current_branch,
    get_commit,
    get_log,
    is_bare_repo,
    is_repo,
    list_branches,
    make_branch,
    parse_commit,
    parse_hashes,
    parse_history,
    parse_refs,
)
from gitwrap.scanner import WalkDecision, classify, find_repos

__all__ = [
    "__version__",
    "Commit",
    "GitEnvironment",
    "GitwrapSettings",
    "GitwrapError",
    "InvocationError",
    "ParseError",
    "ToolUnavailableError",
    "WalkDecision",
    "checkout",
    "classify",
    "clone",
    "current_branch",
    "find_repos",
    "get_commit",
    "get_log",
    "is_bare_repo",
    "is_repo",
    "list_branches",
    "make_branch",
    "parse_commit",
    "parse_hashes",
    "parse_history",
    "parse_refs",
]
