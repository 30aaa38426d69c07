"""Sample snippets for a fresh install or a demo (`textcollector seed`)."""

import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.models.snippet import Snippet
from textcollector.services.persistence import save
from textcollector.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)

SAMPLE_SNIPPETS = [
    {
        "content": "The only way to do great work is to love what you do.",
        "source": "Steve Jobs",
        "category": "Inspiration",
        "tags": ["motivation", "work"],
        "notes": "Great quote to remember when feeling unmotivated",
    },
    {
        "content": "In the middle of difficulty lies opportunity.",
        "source": "Albert Einstein",
        "category": "Philosophy",
        "tags": ["opportunity", "wisdom"],
    },
    {
        "content": (
            "Success is not final, failure is not fatal: "
            "it is the courage to continue that counts."
        ),
        "source": "Winston Churchill",
        "category": "Motivation",
        "tags": ["success", "courage"],
    },
    {
        "content": 'def main():\n    print("Hello, World!")\n\n\nif __name__ == "__main__":\n    main()',
        "source": "Editor",
        "category": "Code",
        "tags": ["python", "template"],
        "notes": "Basic script template - useful for quick reference",
    },
    {
        "content": "Life is what happens when you're busy making other plans.",
        "source": "John Lennon",
        "category": "Life",
        "tags": ["life", "wisdom"],
    },
]


async def seed_sample_snippets(db: AsyncSession, snippet_service: SnippetService) -> List[Snippet]:
    """Create the sample snippets (every other one a favorite) and commit once."""
    created = []
    for index, sample in enumerate(SAMPLE_SNIPPETS):
        snippet = await snippet_service.build(
            db,
            content=sample["content"],
            source=sample["source"],
            category=sample["category"],
            tags=sample["tags"],
            notes=sample.get("notes"),
            is_favorite=index % 2 == 0,
        )
        created.append(snippet)
    await save(db, operation="seed")
    logger.info("Seeded %d sample snippet(s)", len(created))
    return created
