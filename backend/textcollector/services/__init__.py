# Services package init
"""
TextCollector — Services Layer
===============================

What:  Business logic between the entry points (HTTP routes, CLI) and the store.
How:   Services take an AsyncSession per call and return ORM objects or
       response schemas. One SnippetService/TagService pair exists per store.

Service Inventory:
    - TagService:        find-or-create, list, prune orphans
    - SnippetService:    snippet manager (CRUD, tags, search, statistics)
    - persistence.save:  the shared "commit only when dirty" step
    - shortcut_service:  the "Add Snippet" automation command
    - transfer_service:  JSON export / import
    - sample_data:       demo snippets
"""

from textcollector.services.snippet_service import SnippetService
from textcollector.services.tag_service import TagService


def create_snippet_service() -> SnippetService:
    """Wire the SnippetService/TagService pair used by every entry point."""
    return SnippetService(TagService())


__all__ = ["SnippetService", "TagService", "create_snippet_service"]
