"""Creator Match — Entry Point.

Usage:
    # Load data/campaigns.json + data/creators.json into the database
    python main.py seed

    # List stored records
    python main.py campaigns
    python main.py creators

    # Rank creators for a campaign
    python main.py match cmp_glowlab_spring --limit 5 --explain

    # Generate an outreach brief (cached unless --force)
    python main.py brief cmp_glowlab_spring crt_mia_glow
    python main.py brief cmp_glowlab_spring crt_mia_glow --force
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

import config
from pipeline.errors import CreatorMatchError
from pipeline.explain import weighted_contributions
from pipeline.llm import LLMError, get_provider, get_usage_summary
from pipeline.orchestrator import BriefService, MatchService
from pipeline.seed import seed_store
from pipeline.storage import Store

console = Console()


def setup_logging():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL),
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_seed(store: Store, args: argparse.Namespace):
    data_dir = Path(args.data_dir) if args.data_dir else config.DATA_DIR
    counts = seed_store(store, data_dir)
    console.print(
        f"[green]✓ {counts['campaigns']} campaigns, {counts['creators']} creators upserted[/green]"
    )


def cmd_campaigns(store: Store, args: argparse.Namespace):
    table = Table(title="Campaigns")
    table.add_column("ID", style="cyan")
    table.add_column("Brand", style="bold")
    table.add_column("Country")
    table.add_column("Niches")
    table.add_column("Followers")
    for c in store.list_campaigns():
        table.add_row(
            c.id,
            c.brand,
            c.target_country,
            ", ".join(c.niches) or "-",
            f"{c.budget_range.min_followers:,}–{c.budget_range.max_followers:,}",
        )
    console.print(table)


def cmd_creators(store: Store, args: argparse.Namespace):
    table = Table(title="Creators")
    table.add_column("ID", style="cyan")
    table.add_column("Username", style="bold")
    table.add_column("Followers", justify="right")
    table.add_column("Engagement", justify="right")
    table.add_column("Hook")
    table.add_column("Flags")
    for c in store.list_creators():
        table.add_row(
            c.id,
            f"@{c.username}",
            f"{c.followers:,}",
            f"{c.engagement_rate * 100:.1f}%",
            c.primary_hook_type,
            ", ".join(c.brand_safety_flags) or "-",
        )
    console.print(table)


def cmd_match(store: Store, args: argparse.Namespace):
    campaign, results = MatchService(store).get_top_creators_for_campaign(args.campaign_id, args.limit)

    table = Table(title=f"Top creators for {campaign.brand} ({campaign.id})")
    table.add_column("#", justify="right")
    table.add_column("Creator", style="cyan")
    table.add_column("Score", justify="right", style="bold green")
    table.add_column("Niche", justify="right")
    table.add_column("Country", justify="right")
    table.add_column("Engage", justify="right")
    table.add_column("Followers", justify="right")
    table.add_column("Penalty", justify="right", style="red")
    for rank, r in enumerate(results, start=1):
        b = r.breakdown
        table.add_row(
            str(rank),
            f"@{r.creator.username}",
            f"{r.total_score:.2f}",
            f"{b.niche_score:.0f}",
            f"{b.country_score:.0f}",
            f"{b.engagement_score:.0f}",
            f"{b.follower_fit_score:.0f}",
            f"{b.penalties:.0f}" if b.penalties else "-",
        )
    console.print(table)

    if args.explain:
        for r in results:
            contributions = weighted_contributions(r.breakdown)
            lines = [f"• {reason}" for reason in r.reasons or []]
            lines.append("")
            lines.append("  ".join(f"{k}={v:+.2f}" for k, v in contributions.items()))
            console.print(
                Panel("\n".join(lines), title=f"@{r.creator.username} — {r.total_score:.2f}", border_style="cyan")
            )


def cmd_brief(store: Store, args: argparse.Namespace):
    provider = get_provider()
    service = BriefService(store, provider, max_repairs=config.BRIEF_MAX_REPAIR_ATTEMPTS)
    brief, cached = service.generate_brief(args.campaign_id, args.creator_id, force_refresh=args.force)

    source = "cache" if cached else f"{provider.name}/{provider.model}"
    body = [brief.outreach_message, "", "[bold]Content ideas[/bold]"]
    body += [f"{i}. {idea}" for i, idea in enumerate(brief.content_ideas, start=1)]
    body += ["", "[bold]Hook suggestions[/bold]"]
    body += [f"{i}. {hook}" for i, hook in enumerate(brief.hook_suggestions, start=1)]
    console.print(
        Panel("\n".join(body), title=f"Brief {args.campaign_id} × {args.creator_id}", subtitle=source, border_style="green")
    )

    usage = get_usage_summary()
    if usage["calls"]:
        console.print(
            f"[dim]{usage['calls']} call(s), {usage['total_tokens']} tokens, ~${usage['total_cost']:.4f}[/dim]"
        )


COMMANDS = {
    "seed": cmd_seed,
    "campaigns": cmd_campaigns,
    "creators": cmd_creators,
    "match": cmd_match,
    "brief": cmd_brief,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Creator Match — campaign/creator matching and outreach briefs")
    parser.add_argument("--db", help=f"SQLite database path (default: {config.DB_PATH})")
    sub = parser.add_subparsers(dest="command", required=True)

    p_seed = sub.add_parser("seed", help="Upsert seed campaigns and creators")
    p_seed.add_argument("--data-dir", help="Directory with campaigns.json and creators.json")

    sub.add_parser("campaigns", help="List campaigns")
    sub.add_parser("creators", help="List creators")

    p_match = sub.add_parser("match", help="Rank creators for a campaign")
    p_match.add_argument("campaign_id")
    p_match.add_argument("--limit", type=int, default=config.DEFAULT_MATCH_LIMIT)
    p_match.add_argument("--explain", action="store_true", help="Show reasons and weighted contributions")

    p_brief = sub.add_parser("brief", help="Generate an outreach brief for a campaign/creator pair")
    p_brief.add_argument("campaign_id")
    p_brief.add_argument("creator_id")
    p_brief.add_argument("--force", action="store_true", help="Skip the cache and regenerate")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging()

    if getattr(args, "limit", None) is not None and not 1 <= args.limit <= config.MAX_MATCH_LIMIT:
        console.print(f"[red]--limit must be between 1 and {config.MAX_MATCH_LIMIT}[/red]")
        return 2

    store = Store(args.db or config.DB_PATH)
    store.init_db()
    try:
        COMMANDS[args.command](store, args)
    except (CreatorMatchError, LLMError) as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
