"""Version information stamped in at build time."""

_git_commit = ""
_git_tag = ""


def git_commit() -> str:
    """Return the stamped git commit, or ``unknown``."""
    return _git_commit or "unknown"


def git_tag() -> str:
    """Return the stamped git tag, or ``unknown``."""
    return _git_tag or "unknown"