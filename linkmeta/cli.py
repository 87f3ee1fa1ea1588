"""CLI for linkmeta: unfurl URLs from the command line.

Usage:
    python -m linkmeta.cli unfurl https://example.com
    python -m linkmeta.cli unfurl https://example.com --extended --timeout 5000
    python -m linkmeta.cli check https://example.com
"""

import argparse
import asyncio
import json
import sys


def _setup_logging(verbose: bool = False):
    from linkmeta.core.logging_config import configure_logging

    # stdout carries the record; logs go to stderr.
    configure_logging(
        log_format="text",
        log_level="DEBUG" if verbose else "WARNING",
        stream=sys.stderr,
    )


def _print_error(exc) -> None:
    body = {
        "success": False,
        "error": exc.label,
        "message": exc.message,
    }
    if exc.details:
        body["details"] = exc.details
    print(json.dumps(body, indent=2, ensure_ascii=False))


async def _cmd_unfurl(args) -> int:
    """Unfurl a single URL and print the record."""
    from linkmeta.core.exceptions import UnfurlError
    from linkmeta.services.pipeline import unfurl_url

    try:
        record = await unfurl_url(args.url, timeout=args.timeout, extended=args.extended)
    except UnfurlError as e:
        _print_error(e)
        return 1

    output = record.model_dump(by_alias=True, exclude_none=True)
    if args.output == "json":
        print(json.dumps(output, indent=2, ensure_ascii=False))
    else:
        print(f"URL:         {record.url}")
        print(f"Title:       {record.title or '-'}")
        print(f"Description: {record.description or '-'}")
        print(f"Site:        {record.site_name or '-'}")
        print(f"Image:       {record.images.primary or '-'}")
        print(f"Icon:        {record.icons.primary}")
    return 0


def _cmd_check(args) -> int:
    """Run the URL validator only; no request is made."""
    from linkmeta.core.exceptions import UnfurlError
    from linkmeta.services.url_guard import validate_url

    try:
        target = validate_url(args.url)
    except UnfurlError as e:
        _print_error(e)
        return 1
    print(json.dumps({"success": True, "url": target.href, "hostname": target.hostname}))
    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="linkmeta",
        description="linkmeta CLI: extract link-preview metadata from web pages",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "-o", "--output", default="json",
        choices=["json", "text"],
        help="Output format (default: json)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # --- unfurl ---
    unfurl_parser = subparsers.add_parser("unfurl", help="Fetch a URL and extract its metadata")
    unfurl_parser.add_argument("url", help="URL to unfurl")
    unfurl_parser.add_argument("--timeout", type=int, default=None, help="Timeout in milliseconds")
    unfurl_parser.add_argument("--extended", action="store_true", help="Include extended fields")

    # --- check ---
    check_parser = subparsers.add_parser("check", help="Validate a URL without fetching it")
    check_parser.add_argument("url", help="URL to validate")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    _setup_logging(args.verbose)

    if args.command == "unfurl":
        sys.exit(asyncio.run(_cmd_unfurl(args)))
    elif args.command == "check":
        sys.exit(_cmd_check(args))


if __name__ == "__main__":
    main()
