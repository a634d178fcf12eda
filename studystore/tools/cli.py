"""
Command line tool for StudyStore.

Commands:
- reseed: Run the version guard, or force a destructive reseed
- dump: Print a collection (optionally filtered/sorted/limited) as JSON
- accounts: List profiles without passwords
- check: Validate stored records against the entity models
- serve: Run the HTTP gateway

Usage:
    studystore reseed --force
    studystore dump study_sessions --eq user_id=student-1 --order session_date --desc --limit 5
    studystore check
    studystore serve --port 8000

Invariants:
    - Error results exit with code 1
    - Output is JSON on stdout for dump/accounts; messages go to stderr
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
from typing import Any, Optional

from pydantic import ValidationError

from ..client import LocalClient, create_client
from ..config import Settings, setup_logging
from ..gateway.params import coerce_value
from ..query import APIResponse
from ..schema import ENTITY_MODELS, reset

logger = logging.getLogger(__name__)


class StoreCLI:
    """Operations behind the CLI commands.

    Example:
        >>> cli = StoreCLI(create_client())
        >>> cli.dump("profiles", eq=["role=admin"])
    """

    def __init__(self, client: LocalClient) -> None:
        self.client = client

    def reseed(self, force: bool = False) -> bool:
        """Reseed demo data.

        Args:
            force: Reseed even if the version marker is current

        Returns:
            True if data was (re)written by this call or at client start
        """
        if force:
            logger.warning("Forced reseed: wiping all stored collections")
            reset(
                self.client.store,
                rng=random.Random(self.client.settings.seed_random_seed),
                version=self.client.settings.schema_version,
            )
            return True
        return self.client.reseeded

    def dump(
        self,
        collection: str,
        *,
        eq: Optional[list[str]] = None,
        order: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        columns: str = "*",
    ) -> APIResponse:
        """Query a collection.

        Args:
            collection: Collection name
            eq: ``column=value`` equality filters
            order: Sort column
            descending: Sort descending
            limit: Row cap
            columns: Projection

        Raises:
            ValueError: If an eq filter is not ``column=value``
        """
        query = self.client.collection(collection).select(columns)
        for expression in eq or []:
            column, sep, value = expression.partition("=")
            if not sep or not column:
                raise ValueError(f"Expected column=value, got {expression!r}")
            query = query.eq(column, coerce_value(value))
        if order:
            query = query.order(order, ascending=not descending)
        if limit is not None:
            query = query.limit(limit)
        return asyncio.run(query.execute())

    def accounts(self) -> list[dict[str, Any]]:
        result = self.dump("profiles", columns="id, email, full_name, role, organization_id")
        return result.raise_for_error()

    def check(self) -> list[str]:
        """Validate every stored record of known collections.

        Returns:
            One message per invalid record
        """
        problems = []
        for name, model in ENTITY_MODELS.items():
            for record in self.client.store.read_collection(name):
                try:
                    model.model_validate(record)
                except ValidationError as e:
                    problems.append(f"{name}/{record.get('id')}: {e.error_count()} error(s)")
        return problems


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="StudyStore local data tool")
    subparsers = parser.add_subparsers(dest="command", required=True)

    reseed_parser = subparsers.add_parser("reseed", help="Reseed demo data")
    reseed_parser.add_argument("--force", action="store_true", help="Reseed even if current")

    dump_parser = subparsers.add_parser("dump", help="Print a collection as JSON")
    dump_parser.add_argument("collection", help="Collection name")
    dump_parser.add_argument("--eq", action="append", default=[], help="column=value filter")
    dump_parser.add_argument("--order", help="Sort column")
    dump_parser.add_argument("--desc", action="store_true", help="Sort descending")
    dump_parser.add_argument("--limit", type=int, help="Maximum rows")
    dump_parser.add_argument("--select", default="*", help="Comma-separated columns")

    subparsers.add_parser("accounts", help="List profiles")
    subparsers.add_parser("check", help="Validate stored records")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP gateway")
    serve_parser.add_argument("--host", help="Bind host")
    serve_parser.add_argument("--port", type=int, help="Bind port")

    args = parser.parse_args(argv)
    settings = Settings()
    setup_logging(settings)

    if args.command == "serve":
        import uvicorn

        from ..gateway import create_app

        uvicorn.run(
            create_app(settings),
            host=args.host or settings.host,
            port=args.port or settings.port,
        )
        return

    cli = StoreCLI(create_client(settings))

    if args.command == "reseed":
        if cli.reseed(force=args.force):
            print("Demo data written", file=sys.stderr)
        else:
            print("Storage is current; use --force to reseed", file=sys.stderr)
        sys.exit(0)

    elif args.command == "dump":
        try:
            result = cli.dump(
                args.collection,
                eq=args.eq,
                order=args.order,
                descending=args.desc,
                limit=args.limit,
                columns=args.select,
            )
        except ValueError as e:
            print(str(e), file=sys.stderr)
            sys.exit(1)
        if result.error is not None:
            print(json.dumps(result.error.to_dict()), file=sys.stderr)
            sys.exit(1)
        print(json.dumps(result.data, indent=2))
        sys.exit(0)

    elif args.command == "accounts":
        print(json.dumps(cli.accounts(), indent=2))
        sys.exit(0)

    elif args.command == "check":
        problems = cli.check()
        if not problems:
            print("All records are valid")
            sys.exit(0)
        print(f"Found {len(problems)} invalid record(s):")
        for problem in problems:
            print(f"  - {problem}")
        sys.exit(1)


if __name__ == "__main__":
    main()
