"""
Resolve a location and print its authority info as JSON.

Runs against the bundled dataset with a process-local cache, so no
database is needed. Set AI_API_URL / AI_MODEL to enable extraction.

Usage:
    python scripts/lookup.py 8001
    python scripts/lookup.py Kleindöttingen --canton AG --category registration_process
    python scripts/lookup.py Zürich --school --plz 8003 --child-age 7
"""

import argparse
import asyncio
import json
import os
import sys

# Add backend directory to path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from gemeinde_info.core.config import get_settings
from gemeinde_info.core.exceptions import NotFoundError
from gemeinde_info.core.logging import configure_logging
from gemeinde_info.core.models import InfoCategory
from gemeinde_info.services.authority_info import build_authority_info_service
from gemeinde_info.services.extraction import format_office_hours
from gemeinde_info.services.http_client import create_http_client


async def main() -> int:
    parser = argparse.ArgumentParser(description="Look up a Swiss municipality")
    parser.add_argument("query", help="Postal code, municipality or Ortsteil")
    parser.add_argument("--canton", help="Canton hint, e.g. AG")
    parser.add_argument(
        "--category",
        choices=[c.value for c in InfoCategory if c != InfoCategory.SCHOOL_REGISTRATION],
        default=InfoCategory.OPERATIONAL.value,
    )
    parser.add_argument("--resolve-only", action="store_true", help="Skip info acquisition")
    parser.add_argument("--school", action="store_true", help="School registration instead of office info")
    parser.add_argument("--plz", help="Postal code of the address (picks the Schulkreis)")
    parser.add_argument("--address", help="Street address")
    parser.add_argument("--child-age", type=int, default=5)
    args = parser.parse_args()

    configure_logging(json_logs=False)
    settings = get_settings().model_copy(update={"storage_backend": "memory"})

    async with create_http_client(settings) as client:
        service = build_authority_info_service(client, settings)
        try:
            resolved = await service.resolve_location(args.query, args.canton)
        except NotFoundError as e:
            print(f"{e.message}. {e.hint}")
            return 1

        if args.resolve_only:
            print(resolved.model_dump_json(indent=2))
            return 0

        if args.school:
            school = await service.get_school_registration_info(
                resolved, plz=args.plz, address=args.address, child_age=args.child_age
            )
            print(school.model_dump_json(indent=2))
            return 0

        result = await service.get_authority_info(resolved, category=InfoCategory(args.category))

    print(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2))
    print()
    print(format_office_hours(result.info.hours))
    return 0


if __name__ == "__main__":
    exit(asyncio.run(main()))
