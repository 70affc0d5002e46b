"""Payroll remittance command line interface.

Runs the payroll engine over a JSON dataset (see ``payroll_remittance.dataset``)
or over the SQL tables behind ``--database-url``.

Usage:
    payroll-remittance payroll --dataset data.json --month 3 --year 2026
    payroll-remittance stats --dataset data.json --month 3 --year 2026 --by department
    payroll-remittance preview --dataset data.json --month 3 --year 2026
    payroll-remittance cnab400 --dataset data.json --month 3 --year 2026 --output-dir out/
    payroll-remittance init-db --database-url sqlite+aiosqlite:///payroll.db
    payroll-remittance payroll --database-url sqlite+aiosqlite:///payroll.db --month 3 --year 2026
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Callable

from payroll_remittance.config import Settings, configure_logging, get_settings
from payroll_remittance.database import Database
from payroll_remittance.dataset import build_repositories, load_dataset
from payroll_remittance.errors import PayrollError
from payroll_remittance.repositories.sql import build_sql_repositories
from payroll_remittance.schemas import Cnab400Config, parse_filters
from payroll_remittance.services.payroll_service import PayrollService

logger = logging.getLogger(__name__)

FILTER_OPTIONS = (
    "search",
    "company",
    "department",
    "position",
    "cost_center",
    "client",
    "modality",
    "bank",
    "account_type",
    "polo",
)


def parse_date(s: str) -> date:
    """Parse ISO date string."""
    return date.fromisoformat(s)


class PayrollCli:
    """Payroll remittance command line interface."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.parser = self._build_parser()
        self._database: Database | None = None

    def _add_common(self, parser: argparse.ArgumentParser) -> None:
        source = parser.add_mutually_exclusive_group(required=True)
        source.add_argument("--dataset", type=Path, help="JSON dataset file")
        source.add_argument("--database-url", type=str, help="SQLAlchemy async database URL")
        parser.add_argument("--month", type=int, required=True, help="Payroll month (1-12)")
        parser.add_argument("--year", type=int, required=True, help="Payroll year")
        parser.add_argument(
            "--today",
            type=parse_date,
            help="Reference date instead of the wall clock (ISO format)",
        )

    def _add_filters(self, parser: argparse.ArgumentParser) -> None:
        for name in FILTER_OPTIONS:
            parser.add_argument(f"--{name.replace('_', '-')}", dest=name, type=str)
        parser.add_argument(
            "--for-allocation",
            action="store_true",
            help="Only employees whose attendance is tracked",
        )

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="payroll-remittance",
            description="Monthly payroll and CNAB400 remittance tools",
        )
        parser.add_argument("--log-level", type=str, help="Logging level (default from env)")
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        init_db = subparsers.add_parser("init-db", help="Create the payroll tables")
        init_db.add_argument(
            "--database-url",
            type=str,
            help="SQLAlchemy async database URL (default: DATABASE_URL)",
        )

        payroll = subparsers.add_parser("payroll", help="Compute the monthly payroll")
        self._add_common(payroll)
        self._add_filters(payroll)
        payroll.add_argument("--output", type=Path, help="Write JSON here instead of stdout")

        stats = subparsers.add_parser("stats", help="Headcount and benefit totals")
        self._add_common(stats)
        stats.add_argument(
            "--by",
            choices=["company", "department"],
            default="company",
            help="Grouping (default: company)",
        )

        preview = subparsers.add_parser("preview", help="Preview remittance payments")
        self._add_common(preview)
        self._add_filters(preview)
        preview.add_argument(
            "--finalize",
            action="store_true",
            help="Finalize the period before previewing",
        )

        cnab = subparsers.add_parser("cnab400", help="Generate the CNAB400 remittance file")
        self._add_common(cnab)
        self._add_filters(cnab)
        cnab.add_argument("--output-dir", type=Path, default=Path("."), help="Output directory")
        cnab.add_argument(
            "--company-name",
            type=str,
            help="Header company name (default: PAYROLL_COMPANY_NAME)",
        )
        cnab.add_argument("--company-code", type=str)
        cnab.add_argument("--company-cnpj", type=str)
        cnab.add_argument("--sequence", type=int, default=1, help="Remittance sequence number")
        cnab.add_argument("--generation-date", type=parse_date)
        cnab.add_argument("--payment-date", type=parse_date)
        cnab.add_argument(
            "--finalize",
            action="store_true",
            help="Finalize the period before generating",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        configure_logging(parsed.log_level)

        handlers: dict[str, Callable[..., Any]] = {
            "payroll": self._cmd_payroll,
            "stats": self._cmd_stats,
            "preview": self._cmd_preview,
            "cnab400": self._cmd_cnab400,
            "init-db": self._cmd_init_db,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return asyncio.run(self._dispatch(handler, parsed))
        except PayrollError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    async def _dispatch(self, handler: Callable[..., Any], args: argparse.Namespace) -> int:
        try:
            return await handler(args)
        finally:
            if self._database is not None:
                await self._database.dispose()
                self._database = None

    def _open_database(self, url: str | None) -> Database:
        self._database = Database(url or self.settings.database_url)
        return self._database

    async def _service(self, args: argparse.Namespace) -> PayrollService:
        if args.database_url:
            database = self._open_database(args.database_url)
            repositories = build_sql_repositories(
                database.session_factory, state=self.settings.holiday_state
            )
        else:
            repositories = await build_repositories(load_dataset(args.dataset))
        clock = None
        if args.today is not None:
            today = datetime.combine(args.today, time(12, 0), tzinfo=self.settings.tz)
            clock = lambda: today  # noqa: E731
        return PayrollService(repositories, self.settings, clock=clock)

    def _filters(self, args: argparse.Namespace) -> dict[str, Any]:
        raw: dict[str, Any] = {"month": args.month, "year": args.year}
        for name in FILTER_OPTIONS:
            value = getattr(args, name, None)
            if value is not None:
                raw[name] = value
        raw["for_allocation"] = getattr(args, "for_allocation", False)
        return raw

    async def _cmd_init_db(self, args: argparse.Namespace) -> int:
        database = self._open_database(args.database_url)
        await database.create_schema()
        print(f"Schema created on {database.engine.url.render_as_string(hide_password=True)}")
        return 0

    async def _cmd_payroll(self, args: argparse.Namespace) -> int:
        """Compute and print the payroll as JSON."""
        service = await self._service(args)
        payroll = await service.generate_monthly_payroll(parse_filters(self._filters(args)))
        document = {
            "period": {
                "month": payroll.period.month,
                "year": payroll.period.year,
                "month_name": payroll.period.month_name,
            },
            "totals": {
                "total_employees": payroll.totals.total_employees,
                "total_meal_allowance": str(payroll.totals.total_meal_allowance),
                "total_transport_allowance": str(payroll.totals.total_transport_allowance),
                "total_adjustments": str(payroll.totals.total_adjustments),
                "total_discounts": str(payroll.totals.total_discounts),
                "total_net": str(payroll.totals.total_net),
            },
            "employees": [r.to_dict() for r in payroll.employees],
        }
        text = json.dumps(document, indent=2, ensure_ascii=False, default=str)
        if args.output:
            args.output.write_text(text, encoding="utf-8")
            print(f"Payroll written to {args.output}")
        else:
            print(text)
        return 0

    async def _cmd_stats(self, args: argparse.Namespace) -> int:
        service = await self._service(args)
        if args.by == "department":
            stats = await service.stats_by_department(args.month, args.year)
        else:
            stats = await service.stats_by_company(args.month, args.year)
        print(json.dumps([s.to_dict() for s in stats], indent=2, ensure_ascii=False))
        return 0

    async def _cmd_preview(self, args: argparse.Namespace) -> int:
        service = await self._service(args)
        if args.finalize:
            await service.finalize_period(args.month, args.year, "cli")
        preview = await service.remittance_preview(parse_filters(self._filters(args)))
        print(json.dumps(preview.to_dict(), indent=2, ensure_ascii=False))
        return 0

    async def _cmd_cnab400(self, args: argparse.Namespace) -> int:
        """Generate the remittance and write CNAB400-MM-YYYY.txt."""
        service = await self._service(args)
        if args.finalize:
            await service.finalize_period(args.month, args.year, "cli")

        config = Cnab400Config.from_settings(
            self.settings,
            company_name=args.company_name,
            company_code=args.company_code,
            company_cnpj=args.company_cnpj,
            sequence=args.sequence,
            generation_date=args.generation_date or args.today,
            payment_date=args.payment_date,
        )
        document = await service.generate_remittance(
            parse_filters(self._filters(args)), config
        )

        args.output_dir.mkdir(parents=True, exist_ok=True)
        path = args.output_dir / document.filename
        path.write_bytes(document.to_bytes())

        print(f"CNAB400 written to {path}")
        print(f"  Payments: {document.total_payments}")
        print(f"  Total:    {document.total_amount:,.2f}")
        return 0


def main() -> int:
    """CLI entry point."""
    cli = PayrollCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
