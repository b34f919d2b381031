"""AMNESIA CLI — command-line interface for the commission engine.

Usage:
    python -m amnesia.cli compute --sales 100000 --vat 7
    python -m amnesia.cli employee --net-shared 2115.27 --overtime 2000
    python -m amnesia.cli save-month --month March --sales 100000 --overtime Ting=2000
    python -m amnesia.cli load --month March
    python -m amnesia.cli months
    python -m amnesia.cli summary
    python -m amnesia.cli show-policy

AMNESIA_CONFIG_DIR and AMNESIA_DATA_DIR override the default config/
and data/ directories; both may be set in a .env file at the repo root.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from dataclasses import asdict
from pathlib import Path

from dotenv import load_dotenv

from amnesia.commission.engine import CommissionEngine
from amnesia.models.commission import CommissionError
from amnesia.persistence.event_log import EventLog
from amnesia.persistence.record_store import RecordStore
from amnesia.policy.resolver import PolicyResolver
from amnesia.service import CommissionService


ROOT = Path(__file__).resolve().parents[2]

load_dotenv(ROOT / ".env")

DEFAULT_CONFIG = Path(os.getenv("AMNESIA_CONFIG_DIR") or ROOT / "config")
DEFAULT_DATA = Path(os.getenv("AMNESIA_DATA_DIR") or ROOT / "data")


def _make_service(config_dir: Path, data_dir: Path) -> CommissionService:
    """Create a CommissionService with durable persistence."""
    data_dir.mkdir(parents=True, exist_ok=True)
    resolver = PolicyResolver.from_config_dir(config_dir)
    policy = resolver.commission_policy()
    return CommissionService(
        resolver,
        event_log=EventLog(storage_path=data_dir / "events.jsonl"),
        store=RecordStore(policy.roster, storage_path=data_dir / "records.jsonl"),
    )


def _make_engine(config_dir: Path) -> CommissionEngine:
    return CommissionEngine(PolicyResolver.from_config_dir(config_dir).commission_policy())


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, default=str))


def _fail(errors: list[str]) -> int:
    print(f"Failed: {'; '.join(errors)}", file=sys.stderr)
    return 1


def _parse_overtime(pairs: list[str]) -> dict[str, str]:
    """Parse NAME=AMOUNT pairs."""
    overtime: dict[str, str] = {}
    for pair in pairs:
        name, sep, amount = pair.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Overtime must be NAME=AMOUNT, got {pair!r}")
        overtime[name.strip()] = amount.strip()
    return overtime


def cmd_compute(args: argparse.Namespace) -> int:
    engine = _make_engine(args.config)
    vat = args.vat if args.vat is not None else engine.policy.default_vat_percent
    try:
        breakdown = engine.compute_monthly_figures(args.sales, vat)
    except CommissionError as e:
        return _fail([str(e)])
    _print_json(asdict(breakdown))
    return 0


def cmd_employee(args: argparse.Namespace) -> int:
    try:
        breakdown = _make_engine(args.config).compute_employee_figures(
            args.net_shared, args.overtime,
        )
    except CommissionError as e:
        return _fail([str(e)])
    _print_json(asdict(breakdown))
    return 0


def cmd_save_month(args: argparse.Namespace) -> int:
    """Compute one month from the command line and save it."""
    try:
        overtime = _parse_overtime(args.overtime or [])
    except ValueError as e:
        return _fail([str(e)])

    service = _make_service(args.config, args.data)
    result = service.add_month(args.month)
    if not result.success:
        return _fail(result.errors)
    fid = result.data["figures_id"]

    steps = []
    if args.vat is not None:
        steps.append(lambda: service.update_field(fid, "vat_percent", args.vat))
    steps.append(lambda: service.update_field(fid, "total_sales", args.sales))
    for name, amount in overtime.items():
        steps.append(lambda n=name, a=amount: service.update_overtime_for(fid, n, a))

    for step in steps:
        result = step()
        if not result.success:
            return _fail(result.errors)

    saved = service.save_all()
    if not saved.success:
        return _fail(saved.errors)
    _print_json({"saved": saved.data["saved"], "month": result.data})
    return 0


def cmd_load(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    result = service.load_month(args.month)
    if not result.success:
        return _fail(result.errors)
    _print_json(result.data)
    return 0


def cmd_months(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    result = service.available_months()
    if not result.success:
        return _fail(result.errors)
    _print_json(result.data["months"])
    return 0


def cmd_summary(args: argparse.Namespace) -> int:
    """Summarize the latest saved version of every stored month."""
    service = _make_service(args.config, args.data)
    months = service.available_months()
    if not months.success:
        return _fail(months.errors)
    for month in months.data["months"]:
        result = service.load_month(month)
        if not result.success:
            return _fail(result.errors)
    _print_json(asdict(service.summary()))
    return 0


def cmd_show_policy(args: argparse.Namespace) -> int:
    try:
        policy = PolicyResolver.from_config_dir(args.config).commission_policy()
    except (OSError, ValueError) as e:
        return _fail([str(e)])
    _print_json(asdict(policy))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="amnesia",
        description="AMNESIA staff commission calculator",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=DEFAULT_DATA,
        help="Path to data directory for records and events (default: data/)",
    )
    sub = parser.add_subparsers(dest="command")

    # compute
    p_comp = sub.add_parser("compute", help="Compute a month's shared commission")
    p_comp.add_argument("--sales", required=True, help="Total sales incl. VAT (Decimal)")
    p_comp.add_argument("--vat", help="VAT percent (default: policy default)")

    # employee
    p_emp = sub.add_parser("employee", help="Compute one employee's payout")
    p_emp.add_argument("--net-shared", required=True, help="Net shared commission per person")
    p_emp.add_argument("--overtime", default="0", help="Overtime amount (default: 0)")

    # save-month
    p_save = sub.add_parser("save-month", help="Compute a month and save it")
    p_save.add_argument("--month", required=True, help="Month label, e.g. March")
    p_save.add_argument("--sales", required=True, help="Total sales incl. VAT (Decimal)")
    p_save.add_argument("--vat", help="VAT percent (default: policy default)")
    p_save.add_argument(
        "--overtime", action="append", metavar="NAME=AMOUNT",
        help="Overtime for one employee (repeatable)",
    )

    # load
    p_load = sub.add_parser("load", help="Load the latest saved version of a month")
    p_load.add_argument("--month", required=True, help="Month label")

    sub.add_parser("months", help="List months in the record store")
    sub.add_parser("summary", help="Summarize every stored month")
    sub.add_parser("show-policy", help="Show the resolved commission policy")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "compute": cmd_compute,
        "employee": cmd_employee,
        "save-month": cmd_save_month,
        "load": cmd_load,
        "months": cmd_months,
        "summary": cmd_summary,
        "show-policy": cmd_show_policy,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
