"""
Find evaluations that were stored without their answer evaluations.

A submission writes the evaluation row first and its answer evaluations
second; when the second write fails the evaluation is left behind on its own.
This script lists those rows and can delete them so the evaluator can submit
again.

Usage:
    python -m review_platform.scripts.reconcile_evaluations                         # report only
    python -m review_platform.scripts.reconcile_evaluations --older-than-minutes 10
    python -m review_platform.scripts.reconcile_evaluations --delete                # remove orphans
"""

import argparse
import logging
import sys
from typing import List, Optional

from review_platform.repositories.evaluation_repository import EvaluationRepository

logging.basicConfig(level=logging.INFO, format='%(asctime)s | %(levelname)-8s | %(message)s', datefmt='%H:%M:%S')
logger = logging.getLogger(__name__)


def reconcile(
    repo: EvaluationRepository,
    delete: bool = False,
    older_than_minutes: Optional[int] = None,
) -> dict:
    """
    Report and optionally delete orphaned evaluations.

    Returns:
        Summary dict with found/deleted counts and the orphan IDs
    """
    orphans = repo.find_orphaned(older_than_minutes=older_than_minutes)
    logger.info(f"Found {len(orphans)} orphaned evaluation(s)")

    for orphan in orphans:
        logger.info(
            f"  {orphan['id']}  application={orphan['application_id']}  "
            f"evaluator={orphan['evaluator_id']}  score={orphan['final_score']:.2f}  "
            f"created_at={orphan['created_at']}"
        )

    deleted: List[str] = []
    if delete:
        for orphan in orphans:
            if repo.delete_orphaned(orphan["id"]):
                deleted.append(str(orphan["id"]))
            else:
                # Children arrived between the scan and the delete.
                logger.warning(f"Skipped {orphan['id']}: no longer orphaned")
        logger.info(f"Deleted {len(deleted)} orphaned evaluation(s)")

    return {
        "found": len(orphans),
        "deleted": len(deleted),
        "orphan_ids": [str(o["id"]) for o in orphans],
        "deleted_ids": deleted,
    }


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Report or delete orphaned evaluations")
    parser.add_argument("--delete", action="store_true", help="Delete orphaned evaluations")
    parser.add_argument(
        "--older-than-minutes",
        type=int,
        default=5,
        help="Ignore evaluations newer than this, which may still be in flight (default: 5)",
    )
    args = parser.parse_args(argv)

    summary = reconcile(
        EvaluationRepository(),
        delete=args.delete,
        older_than_minutes=args.older_than_minutes,
    )
    return 1 if summary["found"] and not args.delete else 0


if __name__ == "__main__":
    sys.exit(main())
