"""devcred CLI — command-line interface for the developer competency ledger.

Usage:
    python -m devcred.cli status
    python -m devcred.cli init-profile --caller dana
    python -m devcred.cli report --caller dana --category 1 --description "Shipped a token"
    python -m devcred.cli verify --caller victor --developer dana --category 1
    python -m devcred.cli skill --developer dana --category 1
    python -m devcred.cli profile --developer dana
    python -m devcred.cli receipt --verifier victor --developer dana --category 1
    python -m devcred.cli categories
    python -m devcred.cli check-invariants

DEVCRED_CONFIG_DIR and DEVCRED_DATA_DIR may be set in the environment
or in a .env file in the working directory.
"""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from devcred.models.result import LedgerResult
from devcred.persistence.event_log import EventLog
from devcred.persistence.state_store import StateStore
from devcred.policy.resolver import PolicyResolver
from devcred.service import LedgerService


DEFAULT_CONFIG = Path(__file__).resolve().parents[2] / "config"
DEFAULT_DATA = Path(__file__).resolve().parents[2] / "data"


def _make_service(config_dir: Path, data_dir: Path) -> LedgerService:
    """Create a LedgerService with durable persistence."""
    data_dir.mkdir(parents=True, exist_ok=True)
    resolver = PolicyResolver.from_config_dir(config_dir)
    return LedgerService(
        resolver,
        event_log=EventLog(storage_path=data_dir / "events.jsonl"),
        state_store=StateStore(storage_path=data_dir / "ledger.json"),
    )


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _finish(result: LedgerResult, message: str) -> int:
    if result.success:
        print(message)
        if "warning" in result.data:
            print(f"Warning: {result.data['warning']}", file=sys.stderr)
        return 0
    code = result.error_code
    print(
        f"Failed [{code.value} ({code.code})]: {'; '.join(result.errors)}",
        file=sys.stderr,
    )
    return 1


def cmd_status(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data_dir)
    _print_json(service.status())
    return 0


def cmd_init_profile(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data_dir)
    result = service.initialize_profile(args.caller)
    verb = "Initialized" if result.data.get("created") else "Already initialized"
    return _finish(result, f"{verb} profile: {args.caller}")


def cmd_report(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data_dir)
    result = service.report_achievement(args.caller, args.category, args.description)
    return _finish(
        result,
        f"Reported achievement: +{result.data.get('points_awarded')} points "
        f"({result.data.get('points')} in category {args.category})",
    )


def cmd_verify(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data_dir)
    result = service.verify_peer_skill(args.caller, args.developer, args.category)
    return _finish(
        result,
        f"Verified {args.developer}: +{result.data.get('points_awarded')} points",
    )


def cmd_skill(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data_dir)
    view = service.get_skill(args.developer, args.category)
    if view is None:
        _print_json(None)
        return 0
    data = dataclasses.asdict(view)
    data["level"] = int(view.level)
    data["level_name"] = service.get_skill_level_name(view.level)
    data["category_name"] = service.get_skill_category_name(view.category)
    _print_json(data)
    return 0


def cmd_profile(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data_dir)
    profile = service.get_profile(args.developer)
    _print_json(dataclasses.asdict(profile) if profile else None)
    return 0


def cmd_receipt(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data_dir)
    receipt = service.get_peer_verification(args.verifier, args.developer, args.category)
    _print_json(dataclasses.asdict(receipt) if receipt else None)
    return 0


def cmd_categories(args: argparse.Namespace) -> int:
    resolver = PolicyResolver.from_config_dir(args.config)
    _print_json({str(k): v for k, v in resolver.categories.items()})
    return 0


def cmd_check_invariants(args: argparse.Namespace) -> int:
    """Recompute ledger invariants from the persisted state."""
    service = _make_service(args.config, args.data_dir)
    violations = service.check_invariants()
    if violations:
        for violation in violations:
            print(f"FAIL: {violation}", file=sys.stderr)
        return 1
    print("Ledger invariants hold.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devcred",
        description="Developer competency ledger CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(os.environ.get("DEVCRED_CONFIG_DIR", DEFAULT_CONFIG)),
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path(os.environ.get("DEVCRED_DATA_DIR", DEFAULT_DATA)),
        help="Path to ledger data directory (default: data/)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command")

    # status
    sub.add_parser("status", help="Show ledger status")

    # init-profile
    p_init = sub.add_parser("init-profile", help="Initialize the caller's profile")
    p_init.add_argument("--caller", required=True, help="Acting developer identity")

    # report
    p_report = sub.add_parser("report", help="Report a skill achievement")
    p_report.add_argument("--caller", required=True, help="Acting developer identity")
    p_report.add_argument("--category", type=int, required=True, help="Skill category id")
    p_report.add_argument("--description", default="", help="Achievement description")

    # verify
    p_verify = sub.add_parser("verify", help="Verify a peer's skill")
    p_verify.add_argument("--caller", required=True, help="Acting verifier identity")
    p_verify.add_argument("--developer", required=True, help="Developer being verified")
    p_verify.add_argument("--category", type=int, required=True, help="Skill category id")

    # skill
    p_skill = sub.add_parser("skill", help="Show a developer's skill in one category")
    p_skill.add_argument("--developer", required=True)
    p_skill.add_argument("--category", type=int, required=True)

    # profile
    p_profile = sub.add_parser("profile", help="Show a developer profile")
    p_profile.add_argument("--developer", required=True)

    # receipt
    p_receipt = sub.add_parser("receipt", help="Show a verification receipt")
    p_receipt.add_argument("--verifier", required=True)
    p_receipt.add_argument("--developer", required=True)
    p_receipt.add_argument("--category", type=int, required=True)

    # categories
    sub.add_parser("categories", help="List skill categories")

    # check-invariants
    sub.add_parser("check-invariants", help="Recompute ledger invariants")

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "status": cmd_status,
        "init-profile": cmd_init_profile,
        "report": cmd_report,
        "verify": cmd_verify,
        "skill": cmd_skill,
        "profile": cmd_profile,
        "receipt": cmd_receipt,
        "categories": cmd_categories,
        "check-invariants": cmd_check_invariants,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    return handler(args)


if __name__ == "__main__":
    raise SystemExit(main())
