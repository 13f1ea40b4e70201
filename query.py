#!/usr/bin/env python3
"""Ad hoc query runner for the MyChef resolution engine.

Runs one search (and optional regenerations) against the live catalog
without any app around it.

Usage:
    python query.py "spicy thai noodles, no peanuts"
    python query.py --debug "quick vegetarian dinner"          # Show intent and full JSON
    python query.py --image images/fridge.jpg "what can I cook?"
    python query.py --regenerate 3 "chicken curry"              # Initial search + 3 regenerations
    python query.py --intent '{"query": "pasta", "allergies": ["dairy"]}'   # Skip analysis
    python query.py --category desserts                         # Category browsing

Features:
- Gemini intent analysis (text and images) or a literal intent JSON
- Relaxation ladder tagging ("showing similar results" when relaxed)
- Regeneration rotation with dedup against already shown recipes
- Rich table output
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import aiohttp
from rich.console import Console
from rich.table import Table

from mychef.analysis.analyzer import IntentAnalyzer
from mychef.catalog.spoonacular import SpoonacularClient
from mychef.engine.errors import CatalogUnavailable
from mychef.engine.session import SearchSession
from mychef.models.models import AnalysisRequest, Intent, SessionResult
from mychef.utils.logger import logger

console = Console()

USAGE = (
    'Usage: python query.py [--debug] [--image PATH] [--regenerate N] '
    '[--intent JSON] [--category NAME] "<your query>"'
)


def render_result(title: str, result: SessionResult, debug: bool = False) -> None:
    """Print one result page as a table."""
    table = Table(title=title)
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Recipe", style="bold")
    table.add_column("Ready in", justify="right")
    table.add_column("Servings", justify="right")
    table.add_column("Diets", style="green")

    for recipe in result.results:
        table.add_row(
            str(recipe.id),
            recipe.title,
            f"{recipe.ready_in_minutes} min" if recipe.ready_in_minutes else "-",
            str(recipe.servings or "-"),
            ", ".join(recipe.diets[:3]),
        )

    console.print(table)
    mode = result.search_mode
    note = "[yellow]showing similar results[/yellow]" if mode == "fallback" else f"[green]{mode}[/green]"
    line = f"[dim]strategy:[/dim] {result.strategy_used}  [dim]mode:[/dim] {note}"
    if result.variation:
        line += f"  [dim]variation:[/dim] {result.variation}"
    if result.from_cache:
        line += "  [dim](cached)[/dim]"
    console.print(line)
    if debug:
        console.print_json(data=result.model_dump(mode="json"))
    console.print()


async def run_query(
    query: str,
    debug: bool = False,
    image_paths: Optional[List[str]] = None,
    regenerations: int = 0,
    intent_json: Optional[str] = None,
    category: Optional[str] = None,
) -> None:
    """Execute one search plus regenerations and print the results.

    Args:
        query: Free-text request (ignored with --intent or --category).
        debug: If True, print the analyzed intent and full JSON results.
        image_paths: Image files attached to the analysis request.
        regenerations: Number of regenerations after the initial search.
        intent_json: Literal intent JSON; skips analysis.
        category: Category name for browsing; skips analysis.
    """
    async with aiohttp.ClientSession() as http:
        catalog = SpoonacularClient(session=http)

        if category:
            session = SearchSession(catalog)
            render_result(f"Category: {category}", await session.browse(category), debug)
            return

        if intent_json:
            session = SearchSession(catalog)
            result = await session.search(intent=Intent.model_validate(json.loads(intent_json)))
        else:
            images = []
            for path in image_paths or []:
                image_file = Path(path)
                if not image_file.exists():
                    console.print(f"[red]✗ Error: Image file not found: {path}[/red]")
                    sys.exit(1)
                images.append(image_file.read_bytes())
                logger.info(f"✓ Loaded image: {image_file.name} ({image_file.stat().st_size / 1024:.1f} KB)")

            session = SearchSession(catalog, analyzer=IntentAnalyzer())
            result = await session.search(request=AnalysisRequest(search_text=query, images=images))

        if debug and session.intent is not None:
            console.print("[bold cyan]Intent[/bold cyan]")
            console.print_json(data=session.intent.model_dump(mode="json", by_alias=True))

        render_result("Initial search", result, debug)
        for _ in range(regenerations):
            result = await session.regenerate()
            render_result(f"Regeneration {session.regen_state.count}", result, debug)


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print("Examples:")
        print('  python query.py "spicy thai noodles, no peanuts"')
        print('  python query.py --regenerate 3 "chicken curry"')
        print("  python query.py --category desserts")
        sys.exit(1)

    debug_mode = False
    image_paths: List[str] = []
    regenerations = 0
    intent_json = None
    category = None
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        flag = sys.argv[argv_start]
        if flag == "--debug":
            debug_mode = True
            argv_start += 1
            continue
        if flag not in ("--image", "--regenerate", "--intent", "--category"):
            print(f"Unknown flag: {flag}")
            sys.exit(1)
        if argv_start + 1 >= len(sys.argv):
            print(f"Error: {flag} flag requires a value")
            sys.exit(1)
        value = sys.argv[argv_start + 1]
        argv_start += 2
        if flag == "--image":
            image_paths.append(value)
        elif flag == "--regenerate":
            if not value.isdigit():
                print("Error: --regenerate expects a number")
                sys.exit(1)
            regenerations = int(value)
        elif flag == "--intent":
            intent_json = value
        else:
            category = value

    query = " ".join(sys.argv[argv_start:])
    if not query and not intent_json and not category:
        print("Error: No query provided")
        print(USAGE)
        sys.exit(1)

    try:
        asyncio.run(
            run_query(
                query,
                debug=debug_mode,
                image_paths=image_paths,
                regenerations=regenerations,
                intent_json=intent_json,
                category=category,
            )
        )
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except CatalogUnavailable as e:
        console.print(f"[red]✗ {e}[/red]")
        sys.exit(2)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)
