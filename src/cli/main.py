#!/usr/bin/env python3
"""Command line entry point for converting saved puzzle pages to markdown."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from core.controller import ConversionController, PageJob, RunConfig
from core.errors import ConversionError
from core.logger import initialize_logging, get_logger
from core.markup_converter import MarkupConverter
from utils.file_manager import FileManager
from utils.validators import validate_source_url


def load_jobs(jobs_path: str) -> List[PageJob]:
    """
    Read a JSON Lines jobs file.

    Each line holds an object with "path" and "url" keys and an optional
    "output" key.
    """
    jobs = []
    with open(jobs_path, 'r', encoding='utf-8') as f:
        for line_no, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            entry = json.loads(line)
            if 'path' not in entry or 'url' not in entry:
                raise ValueError(f"{jobs_path}:{line_no}: job needs 'path' and 'url'")
            jobs.append(PageJob(html_path=entry['path'], source_url=entry['url'],
                                output_path=entry.get('output')))
    return jobs


def cmd_convert(args) -> int:
    logger = get_logger('cli')

    ok, reason = validate_source_url(args.url)
    if not ok:
        print(f"Error: invalid URL {args.url!r}: {reason}", file=sys.stderr)
        return 1

    files = FileManager(".")
    try:
        html_content = files.read_page(args.page)
        result = MarkupConverter().convert_html(html_content, args.url)
    except (ConversionError, OSError, ValueError) as e:
        logger.error(f"Conversion of {args.page} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        files.save_markdown(result.body, args.output)
        print(result.title)
    elif args.title:
        print(result.title)
    else:
        sys.stdout.write(result.body)
    return 0


def cmd_batch(args) -> int:
    logger = get_logger('cli')

    try:
        jobs = load_jobs(args.jobs)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    config = RunConfig(
        jobs=jobs,
        output_dir=args.output_dir,
        concurrency=args.concurrency,
        overwrite=not args.no_overwrite,
        resume=args.resume,
    )
    controller = ConversionController(config, logger=logger)
    stats = controller.run()

    for outcome in controller.results:
        marker = {"completed": "✓", "skipped": "-", "failed": "✗"}.get(outcome['status'], "?")
        line = f"{marker} {outcome['html_path']}"
        if outcome['title']:
            line += f" ({outcome['title']})"
        if outcome['error']:
            line += f": {outcome['error']}"
        print(line)

    print(f"\n{stats['converted']}/{stats['total']} converted, "
          f"{stats['skipped']} skipped, {stats['failed']} failed")

    if args.error_report and controller.errors.errors:
        controller.errors.save_error_report(args.error_report)

    return 1 if stats['failed'] else 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Convert saved puzzle pages into markdown"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug information"
    )
    parser.add_argument(
        "--log-dir",
        default="logs",
        help="Directory for log files (default: logs)"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert a single saved page")
    convert.add_argument("page", help="Saved HTML page")
    convert.add_argument("url", help="URL the page was fetched from")
    target = convert.add_mutually_exclusive_group()
    target.add_argument(
        "-o", "--output",
        help="Write the markdown body here and print the title"
    )
    target.add_argument(
        "--title",
        action="store_true",
        help="Print only the puzzle title"
    )
    convert.set_defaults(func=cmd_convert)

    batch = subparsers.add_parser("batch", help="Convert every page listed in a jobs file")
    batch.add_argument("jobs", help="JSON Lines file with path/url/output entries")
    batch.add_argument(
        "--output-dir",
        default="output",
        help="Directory for markdown files and the manifest (default: output)"
    )
    batch.add_argument(
        "--concurrency",
        type=int,
        default=1,
        help="Number of pages converted in parallel (default: 1)"
    )
    batch.add_argument(
        "--no-overwrite",
        action="store_true",
        help="Skip pages whose markdown file already exists"
    )
    batch.add_argument(
        "--resume",
        action="store_true",
        help="Skip pages already converted according to the manifest"
    )
    batch.add_argument(
        "--error-report",
        help="Write a detailed error report here if any page fails"
    )
    batch.set_defaults(func=cmd_batch)

    args = parser.parse_args(argv)

    initialize_logging(args.log_dir, logging.DEBUG if args.verbose else logging.WARNING)

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
