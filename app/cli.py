"""
CLI for the PCI engine.

Usage examples:

    # PCI / AAS / cost for a single task JSON
    python -m app.cli pci single-task.json --rate 50

    # Dashboard totals for a task sheet
    python -m app.cli summary tasks.json --preset fintech

    # Outliers, proposal, margins, savings
    python -m app.cli anomalies tasks.json
    python -m app.cli proposal tasks.json --budget 25000
    python -m app.cli margins tasks.json --sales-rate 120
    python -m app.cli savings tasks.json

    # Planned vs. actual spend
    python -m app.cli budget tasks.json
"""

from __future__ import annotations

import argparse
from dataclasses import asdict
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

# --- Make src/ importable ----------------------------------------------------

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from pci_engine.analysis import detect_anomalies, estimate_proposal, summarize_project
from pci_engine.budget import calculate_budget_status
from pci_engine.config import get_config, settings_for_preset
from pci_engine.data_io import load_sheet, task_from_dict
from pci_engine.exceptions import PCIEngineError
from pci_engine.margins import calculate_project_margins
from pci_engine.pci_model import DivisorPolicy, task_metrics
from pci_engine.savings import calculate_savings
from pci_engine.schema import MarginParams, Settings, Task

logger = logging.getLogger(__name__)


# --- Helpers -----------------------------------------------------------------


def _load(command: str, sheet_path: str) -> Tuple[List[Task], Optional[Settings]]:
    path = Path(sheet_path).resolve()
    if not path.exists():
        raise SystemExit(f"[{command}] Task sheet not found: {path}")
    try:
        return load_sheet(path)
    except PCIEngineError as e:
        raise SystemExit(f"[{command}] {e}")
    except json.JSONDecodeError as e:
        raise SystemExit(f"[{command}] Invalid JSON in {path}: {e}")


def _resolve_settings(
    command: str,
    args: argparse.Namespace,
    sheet_settings: Optional[Settings],
) -> Settings:
    """
    Precedence: --preset, then the sheet's settings, then config;
    --rate / --ratio override whichever was chosen.
    """
    if getattr(args, "preset", None):
        try:
            settings = settings_for_preset(args.preset)
        except PCIEngineError as e:
            raise SystemExit(f"[{command}] {e}")
    elif sheet_settings is not None:
        settings = sheet_settings
    else:
        settings = get_config().settings()

    if getattr(args, "rate", None) is not None:
        settings.hourly_rate = args.rate
    if getattr(args, "ratio", None) is not None:
        settings.unit_to_hour_ratio = args.ratio
    return settings


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2))


# --- Commands ----------------------------------------------------------------


def cmd_pci(args: argparse.Namespace) -> None:
    """
    PCI, AAS and cost for one task described in a JSON file.
    """
    task_json_path = Path(args.task_json_path).resolve()
    if not task_json_path.exists():
        raise SystemExit(f"[pci] Task JSON file not found: {task_json_path}")

    try:
        task = task_from_dict(json.loads(task_json_path.read_text(encoding="utf-8")))
    except json.JSONDecodeError as e:
        raise SystemExit(f"[pci] Invalid JSON in {task_json_path}: {e}")
    except PCIEngineError as e:
        raise SystemExit(f"[pci] {e}")

    rate = args.rate if args.rate is not None else get_config().settings().hourly_rate
    metrics = task_metrics(task, rate, DivisorPolicy(args.policy))

    print(f"[pci] Task: {task.label}")
    print(f"[pci] PCI units:      {metrics.pci:.2f}")
    print(f"[pci] AAS:            {metrics.aas:.1f}%")
    print(f"[pci] Verified units: {metrics.verified_units:.2f}")
    print(f"[pci] Cost @ {rate:g}/h:  {metrics.cost:.2f}")
    if args.breakdown:
        _print_json(asdict(metrics.breakdown))


def cmd_summary(args: argparse.Namespace) -> None:
    tasks, sheet_settings = _load("summary", args.sheet_path)
    settings = _resolve_settings("summary", args, sheet_settings)
    cfg = get_config()

    result = summarize_project(
        tasks,
        settings,
        policy=DivisorPolicy(args.policy),
        low_aas_threshold=cfg.low_aas_threshold,
    )

    print(f"[summary] {result.task_count} tasks ({settings.industry_preset}, {settings.hourly_rate:g}/h)")
    print(f"[summary] Total PCI units:      {result.total_pci:.2f}")
    print(f"[summary] AI verified units:    {result.total_ai_verified_units:.2f}")
    print(f"[summary] Verified units:       {result.total_verified_units:.2f}")
    print(f"[summary] Verified cost:        {result.total_verified_cost:.2f}")
    print(f"[summary] Overall AAS:          {result.overall_aas:.1f}%")
    print(f"[summary] Total hours:          {result.total_hours:.1f}")
    print(f"[summary] Blended rate:         {result.effective_blended_rate:.2f}")
    if result.has_low_aas:
        print(f"[summary] Review variance (AAS < {cfg.low_aas_threshold:g}%): "
              + ", ".join(str(i) for i in result.low_aas_task_ids))


def cmd_anomalies(args: argparse.Namespace) -> None:
    tasks, _ = _load("anomalies", args.sheet_path)
    found = detect_anomalies(tasks, high_factor=args.high, low_factor=args.low)
    if not found:
        print("[anomalies] No significant anomalies detected.")
        return

    print(f"[anomalies] Found {len(found)} potential anomalies:")
    for a in found:
        print(
            f"  - {a.task_name or a.task_id}: {a.pci:.2f} units "
            f"(significantly {a.direction} average of {a.average_pci:.2f})"
        )


def cmd_proposal(args: argparse.Namespace) -> None:
    tasks, sheet_settings = _load("proposal", args.sheet_path)
    settings = _resolve_settings("proposal", args, sheet_settings)
    result = estimate_proposal(tasks, settings, budget=args.budget)

    print(f"[proposal] Total PCI:   {result.total_pci:.2f}")
    print(f"[proposal] Total cost:  {result.total_cost:.2f}")
    print(f"[proposal] Total hours: {result.total_hours:.1f}")
    if result.over_budget:
        print(f"[proposal] Over budget by {result.total_cost - result.budget:.2f}")


def cmd_margins(args: argparse.Namespace) -> None:
    tasks, _ = _load("margins", args.sheet_path)
    params = MarginParams(
        internal_rate=args.internal_rate,
        vendor_rate=args.vendor_rate,
        sales_rate=args.sales_rate,
        min_margin_percent=args.min_margin,
    )
    try:
        result = calculate_project_margins(tasks, params)
    except PCIEngineError as e:
        raise SystemExit(f"[margins] {e}")

    print(f"[margins] Hours:        {result.total_hours:.2f}")
    print(f"[margins] Vendor cost:  {result.total_vendor_cost}")
    print(f"[margins] Sales price:  {result.total_sales_price}")
    print(f"[margins] Margin:       {result.total_margin} ({result.margin_percent:.1f}%, {result.health})")
    if result.at_risk:
        print(f"[margins] Margin below minimum of {params.min_margin_percent:g}%")


def cmd_savings(args: argparse.Namespace) -> None:
    tasks, sheet_settings = _load("savings", args.sheet_path)
    settings = _resolve_settings("savings", args, sheet_settings)
    _print_json(asdict(calculate_savings(tasks, settings)))


def cmd_budget(args: argparse.Namespace) -> None:
    tasks, sheet_settings = _load("budget", args.sheet_path)
    settings = _resolve_settings("budget", args, sheet_settings)
    result = calculate_budget_status(tasks, settings, policy=DivisorPolicy(args.policy))

    print(f"[budget] Planned:  {result.total_planned_hours:.1f}h / {result.total_planned_cost:.2f}")
    print(f"[budget] Actual:   {result.total_actual_hours:.1f}h / {result.total_actual_cost:.2f}")
    print(f"[budget] Variance: {result.total_variance:+.2f} ({result.total_variance_percent:+.1f}%, {result.status})")
    print(f"[budget] Progress: {result.average_progress:.0f}%")
    print(f"[budget] Forecast: {result.forecasted_total_cost:.2f} ({result.forecast_variance_percent:+.1f}% vs plan)")


# --- Main --------------------------------------------------------------------


def _add_settings_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--rate", type=float, default=None, help="Hourly rate override.")
    p.add_argument("--ratio", type=float, default=None, help="Unit-to-hour ratio override.")
    p.add_argument("--preset", default=None, help="Industry preset (e.g. general, fintech).")


def _add_policy_arg(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--policy",
        choices=[policy.value for policy in DivisorPolicy],
        default=get_config().divisor_policy.value,
        help="AAS divisor policy (default: exact).",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="PCI Engine CLI – task PCI, project summaries, margins, savings."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # pci
    pci_p = subparsers.add_parser("pci", help="PCI / AAS / cost for a single task JSON.")
    pci_p.add_argument("task_json_path", help="Path to JSON file describing one task.")
    pci_p.add_argument("--rate", type=float, default=None, help="Hourly rate.")
    pci_p.add_argument("--breakdown", action="store_true", help="Print the formula clusters.")
    _add_policy_arg(pci_p)
    pci_p.set_defaults(func=cmd_pci)

    # summary
    sum_p = subparsers.add_parser("summary", help="Project totals for a task sheet.")
    sum_p.add_argument("sheet_path", help="Path to a JSON task sheet.")
    _add_settings_args(sum_p)
    _add_policy_arg(sum_p)
    sum_p.set_defaults(func=cmd_summary)

    # anomalies
    an_p = subparsers.add_parser("anomalies", help="Tasks with outlying PCI.")
    an_p.add_argument("sheet_path", help="Path to a JSON task sheet.")
    an_p.add_argument("--high", type=float, default=2.0, help="Above average * HIGH (default 2.0).")
    an_p.add_argument("--low", type=float, default=0.3, help="Below average * LOW (default 0.3).")
    an_p.set_defaults(func=cmd_anomalies)

    # proposal
    prop_p = subparsers.add_parser("proposal", help="Proposal totals and budget check.")
    prop_p.add_argument("sheet_path", help="Path to a JSON task sheet.")
    prop_p.add_argument("--budget", type=float, default=None, help="Client budget.")
    _add_settings_args(prop_p)
    prop_p.set_defaults(func=cmd_proposal)

    # margins
    mar_p = subparsers.add_parser("margins", help="Margin Lock figures.")
    mar_p.add_argument("sheet_path", help="Path to a JSON task sheet.")
    mar_p.add_argument("--internal-rate", type=float, default=66.0)
    mar_p.add_argument("--vendor-rate", type=float, default=0.0)
    mar_p.add_argument("--sales-rate", type=float, default=99.0)
    mar_p.add_argument("--min-margin", type=float, default=20.0)
    mar_p.set_defaults(func=cmd_margins)

    # savings
    sav_p = subparsers.add_parser("savings", help="Savings and efficiency breakdown.")
    sav_p.add_argument("sheet_path", help="Path to a JSON task sheet.")
    _add_settings_args(sav_p)
    sav_p.set_defaults(func=cmd_savings)

    # budget
    bud_p = subparsers.add_parser("budget", help="Planned vs. actual spend and forecast.")
    bud_p.add_argument("sheet_path", help="Path to a JSON task sheet.")
    _add_settings_args(bud_p)
    _add_policy_arg(bud_p)
    bud_p.set_defaults(func=cmd_budget)

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(
        level=get_config().log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":
    main()
