#!/usr/bin/env python3
"""
Local Scan Script

Run a full Local AI Authority scan (or the flat visibility scan) locally
against simulated model answers.

Usage:
    python scripts/scan_local.py "Acme Plumbing" acmeplumbing.com Austin TX plumber
    python scripts/scan_local.py "Acme Plumbing" acmeplumbing.com Austin TX plumber --flat
    python scripts/scan_local.py "Acme Plumbing" acmeplumbing.com Austin TX plumber --force -o run.json
"""

import asyncio
import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from uuid import uuid4

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from src.auth.models import User, Subscriber
from src.collector.executor import execute_run
from src.context.models import Location, ProfileInput
from src.database import init_db, get_db_context, repository
from src.services import local_authority
from src.services.local_scan import LocalScanInput, run_local_visibility_scan
from src.services.run_queue import simulated_caller_for

CLI_USER_EMAIL = "cli@localauthority.local"


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(),
        ]
    )


def get_cli_user(db, tier: str) -> User:
    """Local user with an active subscription on the given tier."""
    user = db.query(User).filter(User.email == CLI_USER_EMAIL).first()
    if user is None:
        user = User(id=uuid4(), email=CLI_USER_EMAIL, full_name="CLI User", is_active=True)
        db.add(user)
        db.flush()
        db.add(Subscriber(user_id=user.id, subscribed=True, payment_collected=True, subscription_tier=tier))
        db.commit()
    return user


async def run_authority_scan(args) -> dict:
    with get_db_context() as db:
        user = get_cli_user(db, args.tier)
        created = local_authority.upsert_profile(db, user, ProfileInput(
            business_name=args.business_name,
            domain=args.domain,
            primary_location=Location(city=args.city, state=args.state),
            categories=[args.category],
            neighborhoods=args.neighborhood or [],
        ))
        generated = local_authority.generate_prompts(db, user, created.profile_id)
        print(f"Prompts: {generated['total']} {generated['counts_by_layer']}")

        run = local_authority.create_run(db, user, created.profile_id, force=args.force)
        if run["cached"]:
            print(f"Using cached run {run['run_id']}")
        else:
            profile = repository.get_owned_profile(db, user.id, created.profile_id)
            await execute_run(db, run["run_id"], simulated_caller_for(profile))

        return local_authority.get_run(db, user, run["run_id"])


def print_report(report: dict):
    score = report.get("score") or {}
    print(f"\n{'='*60}")
    print(f"LOCAL AI AUTHORITY - {report['profile']['business_name']}")
    print(f"{'='*60}")
    print(f"Status: {report['run']['status']}")
    print(f"Score: {score.get('total')}/100")
    for part in ("geo", "implicit", "association", "sov"):
        print(f"  {part}: {score.get(part)}/25 ({score.get('labels', {}).get(part)})")

    confidence = report.get("confidence") or {}
    print(f"Confidence: {confidence.get('level')}")
    for reason in confidence.get("reasons", []):
        print(f"  - {reason}")

    print(f"\nHighlights:")
    for highlight in report["highlights"]:
        print(f"  - {highlight['text']}")

    print(f"\nTop competitors:")
    for competitor in report["top_competitors"]:
        print(f"  - {competitor['name']} ({competitor['mention_rate']}%)")

    print(f"\nRecommendations:")
    for rec in report["recommendations"]:
        print(f"  - [{rec['impact']}] {rec['title']}")


def main():
    parser = argparse.ArgumentParser(description="Run a Local AI Authority scan locally")
    parser.add_argument("business_name")
    parser.add_argument("domain")
    parser.add_argument("city")
    parser.add_argument("state")
    parser.add_argument("category")
    parser.add_argument("--neighborhood", action="append", help="Neighborhood (repeatable)")
    parser.add_argument("--tier", default="pro", help="Subscription tier for the local user")
    parser.add_argument("--flat", action="store_true", help="Run the flat local visibility scan instead")
    parser.add_argument("--force", action="store_true", help="Ignore cached results")
    parser.add_argument("-o", "--output", help="Write the JSON result to this file")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    load_dotenv()
    setup_logging(args.verbose)
    init_db()

    start_time = datetime.now()

    if args.flat:
        with get_db_context() as db:
            result = run_local_visibility_scan(
                db,
                LocalScanInput(
                    business_name=args.business_name,
                    city=args.city,
                    category=args.category,
                    website=args.domain,
                ),
                force=args.force,
            )
        print(f"\nScore: {result['normalized_score']}/100 - {result['status_label']}"
              f" (cached: {result['cached']})")
        print(f"Google Maps estimate: {result['google_maps_estimate']}")
    else:
        result = asyncio.run(run_authority_scan(args))
        print_report(result)

    print(f"\nDuration: {(datetime.now() - start_time).total_seconds():.1f} seconds")

    if args.output:
        with open(args.output, "w") as f:
            json.dump(result, f, indent=2, default=str)
        print(f"Saved to {args.output}")


if __name__ == "__main__":
    main()
