"""Git access."""

from .repository import GitError, Repository

__all__ = ["GitError", "Repository"]
