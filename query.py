#!/usr/bin/env python3
"""Ad hoc query runner for Fridge Planner.

Run the pipeline in-process without starting the API server.

Usage:
    python query.py "chicken, lemon, garlic - quick, not spicy"
    python query.py --max 10 "chicken, lemon, garlic"
    python query.py --debug "chicken, rice"  # Show full JSON response

Features:
- Direct pipeline execution (same services as the API)
- Hits table, shopping list and cooking timeline rendered with rich
- Debug mode to display the full JSON envelope
"""

import asyncio
import sys
from typing import Optional

from rich.console import Console
from rich.table import Table

from src.models.models import FridgeRunResponse
from src.prompts.prompts import SHOPPING_CATEGORIES
from src.services.factory import initialize_services
from src.utils.errors import FridgePlannerError
from src.utils.logger import logger

console = Console()


def render_response(response: FridgeRunResponse) -> None:
    """Print hits, shopping list and timeline."""
    interpreted = response.interpreted
    console.print(f"[bold]Ingredients:[/bold] {', '.join(interpreted.ingredients) or '-'}")
    ingest = response.ingest
    console.print(
        f"[dim]Candidates {ingest.candidates} | selected {ingest.selected} | "
        f"cached {ingest.already_indexed} | looked up {ingest.lookups} | indexed {ingest.indexed}[/dim]"
    )
    console.print()

    if not response.hits:
        console.print("[yellow]No matching recipes found[/yellow]")
        return

    hits_table = Table(title="Top recipes")
    hits_table.add_column("#", justify="right")
    hits_table.add_column("Recipe")
    hits_table.add_column("Match", justify="right")
    hits_table.add_column("Ingredients", justify="right")
    hits_table.add_column("Category / Area")
    for position, hit in enumerate(response.hits, start=1):
        hits_table.add_row(
            str(position),
            f"{hit.name} [dim]({hit.id})[/dim]",
            str(hit.match),
            str(hit.ingredient_count),
            f"{hit.category or '-'} / {hit.area or '-'}",
        )
    console.print(hits_table)

    plan = response.plan
    if plan is None:
        console.print("[yellow]No plan could be generated[/yellow]")
        return

    console.print()
    console.print("[bold cyan]Picks[/bold cyan]")
    for pick in plan.picks:
        console.print(f"  {pick.name} [dim]({pick.id})[/dim]  simplicity {pick.simplicity_score:g}/10  {pick.why}")

    console.print()
    console.print("[bold cyan]Shopping list[/bold cyan]")
    for category in SHOPPING_CATEGORIES:
        items = getattr(plan.shopping_list, category)
        if items:
            console.print(f"  [bold]{category}[/bold]")
            for item in items:
                console.print(f"    • {item}")

    console.print()
    console.print("[bold cyan]Timeline[/bold cyan]")
    for step in plan.timeline:
        console.print(f"  {step.from_min:>3}-{step.to_min:<3} min  {step.step}")


def run_query(query: str, max_candidates: Optional[int] = None, debug: bool = False) -> int:
    """Execute one query and print the result.

    Returns:
        Process exit code (0 ok, 1 bad input, 2 failure).
    """
    try:
        services = initialize_services()
        logger.info(f"Running query: {query}")
        result = asyncio.run(services.fridge_run.run(query, max_candidates))
    except KeyboardInterrupt:
        logger.info("Query interrupted by user.")
        return 0
    except FridgePlannerError as e:
        logger.error(f"Query failed: {e}")
        return 2

    console.print()
    if debug:
        console.print("[bold cyan]Debug Mode: Full Response[/bold cyan]")
        console.print_json(data=result.body.to_wire())
        console.print()

    render_response(result.body)
    return 1 if result.bad_input else 0


if __name__ == "__main__":
    usage = 'Usage: python query.py [--debug] [--max N] "<ingredients>"'
    debug_mode = False
    max_candidates: Optional[int] = None
    argv_start = 1

    while argv_start < len(sys.argv) and sys.argv[argv_start].startswith("--"):
        flag = sys.argv[argv_start]
        if flag == "--debug":
            debug_mode = True
            argv_start += 1
        elif flag == "--max":
            if argv_start + 1 >= len(sys.argv) or not sys.argv[argv_start + 1].isdigit():
                print("Error: --max requires an integer")
                sys.exit(1)
            max_candidates = int(sys.argv[argv_start + 1])
            argv_start += 2
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)

    if argv_start >= len(sys.argv):
        print("Error: No query provided")
        print(usage)
        sys.exit(1)

    query = " ".join(sys.argv[argv_start:])
    sys.exit(run_query(query, max_candidates=max_candidates, debug=debug_mode))
