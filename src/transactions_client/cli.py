"""Command line entrypoint for the transactions client."""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Sequence

from transactions_client import __version__
from transactions_client.app import TransactionsApp, build_app
from transactions_client.domain.models import FIELD_NAMES, Transaction
from transactions_client.form.controller import SubmitOutcome
from transactions_client.gateway.errors import GatewayError
from transactions_client.logging_utils import configure_logging, get_logger
from transactions_client.notifications import NoticeLevel
from transactions_client.utils.formatting import (
    current_datetime_input,
    format_currency,
    format_date,
    truncate_text,
)
from transactions_client.views.list_view import SortDirection, SortField, SortSpec

EXIT_OK = 0
EXIT_FAILURE = 1

_FIELD_OPTIONS = {
    "amount": "amount",
    "category": "business_category",
    "name": "counterparty_name",
    "date": "transaction_date",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="transactions-client",
        description="Manage transactions stored in the remote transactions service.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")
    sub = parser.add_subparsers(dest="command", required=True)

    list_parser = sub.add_parser("list", help="List transactions")
    list_parser.add_argument("--search", default="", help="Filter by name or category")
    list_parser.add_argument(
        "--sort",
        choices=[field.value for field in SortField],
        default=SortField.DATE.value,
    )
    list_parser.add_argument("--asc", action="store_true", help="Sort ascending")

    show_parser = sub.add_parser("show", help="Show one transaction")
    show_parser.add_argument("id")

    by_name_parser = sub.add_parser("by-name", help="List transactions of one counterparty")
    by_name_parser.add_argument("name")

    create_parser = sub.add_parser("create", help="Create a transaction")
    _add_field_options(create_parser, required=True)

    update_parser = sub.add_parser("update", help="Update a transaction")
    update_parser.add_argument("id")
    _add_field_options(update_parser, required=False)

    delete_parser = sub.add_parser("delete", help="Delete a transaction")
    delete_parser.add_argument("id")
    return parser


def _add_field_options(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--amount", required=required, help="Amount in pesos")
    parser.add_argument("--category", required=required, help="Business category")
    parser.add_argument("--name", required=required, help="Counterparty name")
    parser.add_argument("--date", help="Transaction date, YYYY-MM-DDTHH:MM")


def _format_row(record: Transaction) -> str:
    return " | ".join(
        [
            str(record.id if record.id is not None else "-"),
            truncate_text(record.counterparty_name, 30),
            format_currency(record.amount),
            truncate_text(record.business_category, 30),
            format_date(record.transaction_date),
        ]
    )


def _print_notices(app: TransactionsApp) -> None:
    for notice in app.notifier.drain():
        stream = sys.stderr if notice.level is NoticeLevel.ERROR else sys.stdout
        print(notice.message, file=stream)


async def _run_list(app: TransactionsApp, args: argparse.Namespace) -> int:
    direction = SortDirection.ASC if args.asc else SortDirection.DESC
    app.list_view.sort = SortSpec(field=args.sort, direction=direction)
    app.list_view.search(args.search)
    projection = await app.refresh()
    _print_notices(app)
    if projection.stale and projection.is_empty:
        return EXIT_FAILURE
    for record in projection.rows:
        print(_format_row(record))
    print(f"Total: {projection.total} transaction(s)")
    return EXIT_OK


async def _run_submit(app: TransactionsApp, args: argparse.Namespace) -> int:
    if args.command == "update":
        try:
            record = await app.store.get_transaction(args.id)
        except GatewayError as exc:
            print(exc.message, file=sys.stderr)
            return EXIT_FAILURE
        app.start_edit(record)
    elif args.date is None:
        args.date = current_datetime_input()

    for option, field in _FIELD_OPTIONS.items():
        value = getattr(args, option)
        if value is not None:
            app.change_field(field, value)

    result = await app.submit()
    _print_notices(app)
    if result.outcome is SubmitOutcome.INVALID:
        for field in FIELD_NAMES:
            message = app.form.visible_error(field)
            if message:
                print(f"{field}: {message}", file=sys.stderr)
    if not result.succeeded:
        return EXIT_FAILURE
    if result.record is not None:
        print(_format_row(result.record))
    return EXIT_OK


async def _run(args: argparse.Namespace) -> int:
    get_logger(__name__).debug("Running %s command", args.command)
    app, context = build_app()
    try:
        if args.command == "list":
            return await _run_list(app, args)
        if args.command in ("create", "update"):
            return await _run_submit(app, args)
        if args.command == "delete":
            deleted = await app.delete(args.id)
            _print_notices(app)
            return EXIT_OK if deleted else EXIT_FAILURE
        try:
            if args.command == "show":
                records = [await app.store.get_transaction(args.id)]
            else:
                records = await app.store.transactions_for_counterparty(args.name)
        except GatewayError as exc:
            print(exc.message, file=sys.stderr)
            return EXIT_FAILURE
        for record in records:
            print(_format_row(record))
        return EXIT_OK
    finally:
        await context.cache.wait_idle()
        await context.gateway.aclose()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else None)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
