"""State store backends."""

from .base import StateStore
from .github import GitHubContentsStore
from .memory import InMemoryStore

__all__ = ["StateStore", "GitHubContentsStore", "InMemoryStore"]
