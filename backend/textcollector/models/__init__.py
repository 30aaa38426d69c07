"""ORM models for the snippet store."""

from textcollector.models.snippet import Snippet, snippet_tags
from textcollector.models.tag import Tag

__all__ = ["Snippet", "Tag", "snippet_tags"]
