"""Persistence backends."""

from .git import GitRepository

__all__ = ["GitRepository"]
