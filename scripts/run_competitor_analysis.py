#!/usr/bin/env python3
"""
Competitor Analysis Runner

Runs one competitive SERP analysis in the foreground and prints the
summary, top competitors and top opportunities.

Usage:
    # Set environment variables first:
    export GOOGLE_SEARCH_API_KEY=your_key
    export GOOGLE_SEARCH_ENGINE_ID=your_cx

    # Run analysis:
    python scripts/run_competitor_analysis.py shop.example "buy shoes" "running shoes"

    # With known competitors:
    python scripts/run_competitor_analysis.py shop.example "buy shoes" \
        --competitor rival.com \
        --competitor other.example
"""

import asyncio
import argparse
import logging
import os
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


async def run_competitor_analysis(
    domain: str,
    keywords: list,
    competitors: list = None,
    user_id: str = None,
    show: int = 5,
):
    """Run the analysis pipeline and print the outcome."""

    load_dotenv()

    missing = [
        var for var in ("GOOGLE_SEARCH_API_KEY", "GOOGLE_SEARCH_ENGINE_ID")
        if not os.getenv(var)
    ]
    if missing:
        print("ERROR: Missing required environment variables:")
        for var in missing:
            print(f"  - {var}")
        return None

    print(f"\n{'='*70}")
    print("SERP COMPETITOR ANALYZER")
    print(f"{'='*70}")
    print(f"Domain:       {domain}")
    print(f"Keywords:     {len(keywords)}")
    print(f"Competitors:  {', '.join(competitors) if competitors else '(auto-detect)'}")
    print(f"{'='*70}\n")

    start_time = datetime.now()

    from src.database import get_analysis_results, init_db
    from src.services import run_competitive_analysis

    init_db()

    status = await run_competitive_analysis(
        target_domain=domain,
        keywords=keywords,
        additional_competitors=competitors,
        user_id=user_id,
    )

    duration = (datetime.now() - start_time).total_seconds()

    print("\n" + "="*70)
    print(f"ANALYSIS {status['status'].upper()}")
    print("="*70)
    print(f"Analysis ID: {status['analysis_id']}")
    print(f"Duration:    {duration:.1f} seconds")

    if status["status"] != "completed":
        print(f"Error:       {status['error']}")
        print("="*70 + "\n")
        return status

    results = get_analysis_results(status["analysis_id"])
    unresolved = status["metadata"].get("unresolved_keywords", [])

    print(f"Score:       {status['overall_score']}/100")
    print(f"Keywords:    {status['total_keywords']} resolved, {len(unresolved)} unresolved")
    print(f"Competitors: {status['total_competitors']}")

    print("\nTop competitors:")
    for c in results["competitors"][:show]:
        print(
            f"  {c['domain']:<35} relevance {c['relevance_score']:>4}  "
            f"keywords {c['total_keywords_found']:>2}  share {c['share_of_voice']:.0%}"
        )

    print("\nTop opportunities:")
    for o in results["opportunities"][:show]:
        print(f"  [{o['priority_score']:>3}] {o['recommended_action']}")

    if unresolved:
        print("\nUnresolved keywords:")
        for u in unresolved:
            print(f"  - {u['keyword']}: {u['error']}")

    print("="*70 + "\n")
    return status


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run a competitive SERP analysis for one domain"
    )
    parser.add_argument(
        "domain",
        help="Target domain (e.g., shop.example)"
    )
    parser.add_argument(
        "keywords",
        nargs="+",
        help="Keywords to analyze"
    )
    parser.add_argument(
        "--competitor",
        action="append",
        default=None,
        help="Known competitor domain (repeatable)"
    )
    parser.add_argument(
        "--user",
        default=None,
        help="Owning user id (optional)"
    )
    parser.add_argument(
        "--show",
        type=int,
        default=5,
        help="Competitors/opportunities to print (default: 5)"
    )

    args = parser.parse_args()

    status = asyncio.run(run_competitor_analysis(
        domain=args.domain,
        keywords=args.keywords,
        competitors=args.competitor,
        user_id=args.user,
        show=args.show,
    ))

    if not status or status["status"] != "completed":
        sys.exit(1)


if __name__ == "__main__":
    main()
