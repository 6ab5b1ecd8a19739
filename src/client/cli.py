#!/usr/bin/env python3
"""
Command line client for the Answer Paper Grader API.

Examples:
  paper-grader --email teacher@example.com --password teach123 upload \\
      --subject Physics --total-marks 50 --sections sections.json scan1.pdf scan2.jpg
  paper-grader --email teacher@example.com --password teach123 status <paper id>
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from src.client.paper_client import PaperClient, PaperClientError
from src.constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_POLL_TIMEOUT,
    PAPER_STATUS_ANALYZED,
    ROLE_TEACHER,
    USER_ROLES,
)

DEFAULT_API_URL = "http://127.0.0.1:5000"


def load_sections(value: str) -> List[Dict[str, Any]]:
    """Sections from a JSON string or a path to a JSON file."""
    text = Path(value).read_text(encoding="utf-8") if os.path.isfile(value) else value
    sections = json.loads(text)
    if not isinstance(sections, list):
        raise ValueError("sections must be a JSON list")
    return sections


def _print_status(status: Dict[str, Any]) -> None:
    current = next(
        (step["name"] for step in status.get("steps") or [] if step.get("status") == "in-progress"),
        "",
    )
    print(f"  {status.get('fileName')}: {status.get('status')} {status.get('progress')}% {current}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="paper-grader",
        description="Upload answer papers and follow their processing",
    )
    parser.add_argument("--url", default=os.getenv("PAPER_GRADER_URL", DEFAULT_API_URL))
    parser.add_argument("--email", default=os.getenv("PAPER_GRADER_EMAIL"))
    parser.add_argument("--password", default=os.getenv("PAPER_GRADER_PASSWORD"))
    parser.add_argument("--role", choices=USER_ROLES, default=ROLE_TEACHER)

    subparsers = parser.add_subparsers(dest="command", required=True)

    upload = subparsers.add_parser("upload", help="Upload papers and wait for processing")
    upload.add_argument("files", nargs="+", help="Answer papers to upload")
    upload.add_argument("--subject", required=True)
    upload.add_argument("--total-marks", type=int, required=True)
    upload.add_argument(
        "--sections", required=True, help="JSON list of sections, or a file containing it"
    )
    upload.add_argument("--student-id", help="Student the papers belong to")
    upload.add_argument(
        "--interval", type=float, default=DEFAULT_POLL_INTERVAL, help="Seconds between polls"
    )
    upload.add_argument(
        "--timeout", type=float, default=DEFAULT_POLL_TIMEOUT, help="Seconds to wait per paper"
    )
    upload.add_argument("--no-wait", action="store_true", help="Return right after uploading")

    status = subparsers.add_parser("status", help="Show the status of a paper")
    status.add_argument("paper_id")

    return parser


def run_upload(client: PaperClient, args: argparse.Namespace) -> int:
    papers = client.upload_papers(
        args.files,
        subject=args.subject,
        total_marks=args.total_marks,
        sections=load_sections(args.sections),
        student_id=args.student_id,
    )
    print(f"Uploaded {len(papers)} paper(s)")
    for paper in papers:
        print(f"  {paper['id']}  {paper['fileName']}")

    if args.no_wait:
        return 0

    failed = 0
    for paper in papers:
        try:
            final = client.wait_for_paper(
                paper["id"], interval=args.interval, timeout=args.timeout, on_update=_print_status
            )
        except TimeoutError as e:
            print(f"Timed out: {e}", file=sys.stderr)
            failed += 1
            continue

        if final["status"] == PAPER_STATUS_ANALYZED:
            analysis = final.get("analysisResults") or {}
            print(f"{final['fileName']}: analyzed, {analysis.get('wordCount', 0)} words extracted")
        else:
            print(f"{final['fileName']}: processing failed", file=sys.stderr)
            failed += 1

    return 1 if failed else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)
    if not args.email or not args.password:
        print("--email and --password are required", file=sys.stderr)
        return 2

    client = PaperClient(args.url)
    try:
        client.login(args.email, args.password, args.role)
        if args.command == "upload":
            return run_upload(client, args)

        status = client.get_status(args.paper_id)
        print(json.dumps(status, indent=2))
        return 0
    except PaperClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
