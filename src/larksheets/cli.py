"""Command-line interface for larksheets."""

import argparse
import json
import logging
import sys

from .config import settings
from .errors import LarkError


def main(argv=None):
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="larksheets - Lark spreadsheet and contact API client"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("token", help="Print a freshly issued tenant access token")

    user_parser = subparsers.add_parser("user-id", help="Resolve an email to a user id")
    user_parser.add_argument("email", help="Email address of the user")

    meta_parser = subparsers.add_parser("meta", help="Print spreadsheet metadata as JSON")
    meta_parser.add_argument("spreadsheet", help="Spreadsheet token")
    meta_parser.add_argument(
        "--ext-fields", default="", help="Extra fields to include, e.g. protectedRange"
    )

    create_parser = subparsers.add_parser("create", help="Create a spreadsheet")
    create_parser.add_argument("folder", help="Folder token to create the spreadsheet in")
    create_parser.add_argument("title", help="Spreadsheet title")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        run_command(args)
    except (LarkError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def run_command(args: argparse.Namespace):
    """Run one subcommand against a client built from settings."""
    from .client import LarkClient

    with LarkClient.from_settings(settings, auto_refresh=False) as client:
        if args.command == "token":
            print(client.tokens.token)
        elif args.command == "user-id":
            print(client.get_user_id(args.email))
        elif args.command == "meta":
            meta = client.get_spreadsheet_meta(args.spreadsheet, ext_fields=args.ext_fields)
            print(json.dumps(meta.model_dump(by_alias=True), indent=2, ensure_ascii=False))
        elif args.command == "create":
            print(client.create_spreadsheet(args.folder, args.title))


if __name__ == "__main__":
    main()
