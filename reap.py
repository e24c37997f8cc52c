"""Run the reaper sweep outside the web app (cron / scheduler)."""
import argparse
import logging
import sys

from db import get_database_uncached
from portal.errors import PortalError
from portal.reaper import find_purge_candidates, run_reaper_sweep

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Purge profiles inactive past the purge threshold.")
    parser.add_argument("--dry-run", action="store_true", help="List eligible usernames, delete nothing")
    args = parser.parse_args(argv)

    db = get_database_uncached()
    try:
        if args.dry_run:
            candidates = find_purge_candidates(db)
            for p in candidates:
                print(f"{p.username}\t{p.id}\tlast active {p.last_active_day or 'never'}")
            print(f"{len(candidates)} profile(s) would be purged")
            return 0
        # Scheduled runs hold the service key and act as the super-user.
        result = run_reaper_sweep(db, caller_is_privileged=True)
    except PortalError as e:
        logger.error("Sweep failed: %s", e)
        return 1
    print(f"Purged {result.purged} profile(s), {result.errors} error(s)")
    return 1 if result.errors else 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    sys.exit(main())
