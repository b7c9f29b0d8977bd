#!/usr/bin/env python3
"""
Caption Link Verification

Checks that every caption is linked to the content item it is listed under
and that no caption points at a missing content item.

Usage: python verify_caption_links.py [driveFileId]

Exits with status 1 when any issue is found.
"""

import argparse
import asyncio
import sys
from typing import Any, Dict, Optional

from core.database import Database
from core.logging_config import setup_logging
from services.link_verifier import CaptionLinkVerifier


async def run_verification(drive_file_id: Optional[str] = None) -> Dict[str, Any]:
    database = Database()
    try:
        async with database.session() as session:
            return await CaptionLinkVerifier(session).verify(drive_file_id)
    finally:
        await database.dispose()


def print_report(report: Dict[str, Any]) -> None:
    if not report["items"]:
        print("No content items found")

    for item in report["items"]:
        print(f"Content item {item['contentItemId']}")
        print(f"   Drive File ID: {item['driveFileId']}")
        print(f"   Filename:      {item['filename']} ({item['fileType']})")
        print(f"   Captions:      {item['captionCount']}")
        for mismatch in item.get("mismatchedCaptions", []):
            print(
                f"   MISMATCH caption {mismatch['captionId']}: "
                f"expected {mismatch['expected']}, actual {mismatch['actual']}"
            )
        print("-" * 80)

    for orphan in report["orphanedCaptions"]:
        print(
            f"ORPHANED caption {orphan['captionId']} "
            f"(tone: {orphan['tone']}, status: {orphan['status']}) "
            f"-> missing content item {orphan['contentItemId']}"
        )

    if report["passed"]:
        print("All captions are correctly linked")
    else:
        print(f"Found {report['issues']} issue(s)")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Verify caption to content item links")
    parser.add_argument("drive_file_id", nargs="?", help="Only check this drive file")
    args = parser.parse_args(argv)

    setup_logging()
    report = asyncio.run(run_verification(args.drive_file_id))
    print_report(report)
    return 0 if report["passed"] else 1


if __name__ == "__main__":
    sys.exit(main())
