#!/usr/bin/env python3
"""
Seed Notes Script

Inserts a handful of sample notes through the NotebookService (so they
get auto-tagged), then runs a relationship recomputation and prints the
resulting edges.

Usage:
    Requires Postgres reachable with the POSTGRES_* settings:
    $ python scripts/seed_notes.py
    $ python scripts/seed_notes.py --path exact --reset

Warning:
    --reset TRUNCATES notes, tags and relationships. Dev/test only.
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from rich.console import Console
from rich.table import Table
from sqlalchemy import text

from notegraph.core.database import create_tables, dispose_engine, get_session_factory
from notegraph.core.errors import NotegraphError
from notegraph.core.logging import setup_logging
from notegraph.services.notebook import NotebookService

console = Console()

SAMPLE_NOTES: list[tuple[str, str]] = [
    ("Sourdough starter", "Feed the starter twice a day with equal flour and water."),
    ("Weekend baking", "Croissants need cold butter and a long rest between folds."),
    ("Quarterly budget", "Track recurring subscriptions and move savings to the index fund."),
    ("Tax prep", "Collect receipts for deductible expenses before March."),
    ("Python tips", "Use async/await for I/O bound tasks and keep CPU work in threads."),
]


async def seed(path: str, reset: bool) -> int:
    await create_tables()
    notebook = NotebookService()
    factory = get_session_factory()

    async with factory() as session:
        if reset:
            await session.execute(
                text("TRUNCATE TABLE tag_relationships, note_tags, tags, notes")
            )
            await session.commit()
            console.print("[yellow]⚠[/yellow] Existing notes and tags removed")

        for title, content in SAMPLE_NOTES:
            note = await notebook.create_note(session, title, content)
            console.print(f"[green]✓[/green] {note.title}: {', '.join(note.tags) or '(no tags)'}")

        try:
            if path == "exact":
                outcome = await notebook.recompute_relationships_exact(session)
            else:
                outcome = await notebook.recompute_relationships_fast(session)
        except NotegraphError as e:
            console.print(f"[red]✗[/red] Relationship calculation failed: {e.message}")
            return 1

        relationships = await notebook.list_relationships(session, min_similarity=0.0)

    table = Table(title=f"Tag relationships ({path} path, {outcome.count} written)")
    table.add_column("Tag", style="cyan")
    table.add_column("Tag", style="cyan")
    table.add_column("Similarity", justify="right")
    for rel in relationships:
        table.add_row(rel.tag1, rel.tag2, f"{rel.similarity:.3f}")
    console.print(table)
    return 0


async def run(path: str, reset: bool) -> int:
    try:
        return await seed(path, reset)
    finally:
        await dispose_engine()


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed notegraph with sample notes")
    parser.add_argument(
        "--path",
        choices=("fast", "exact"),
        default="fast",
        help="Relationship path to run after seeding (default: fast)",
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Truncate notes, tags and relationships first",
    )
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args()

    setup_logging(args.log_level)
    return asyncio.run(run(args.path, args.reset))


if __name__ == "__main__":
    sys.exit(main())
