#!/usr/bin/env python3
"""
Drive the timesheet workflow from the command line.

Talks to the configured timesheet service over HTTP, or to a seeded
in-process service with ``--demo`` (mutations then last only for the
one invocation).

Usage:
    python3 scripts/timesheet_cli.py [--config PATH] [--demo] <command> ...

Examples:
    # Employee list, newest first, page 1
    python3 scripts/timesheet_cli.py --demo list --as employee

    # Manager list of pending timesheets on a narrow screen
    python3 scripts/timesheet_cli.py --demo list --as manager --status PENDING --width 500

    # Submit a week
    python3 scripts/timesheet_cli.py --demo submit \\
        --set startDate=2024-03-04 --set endDate=2024-03-08 --set numberOfHours=40 \\
        --set clientName=Acme --set projectName=Portal --set taskType=development \\
        --set workLocation=office --set reportingManager=Manager --set onCallSupport=false

    # Manager actions
    python3 scripts/timesheet_cli.py --demo approve 2
    python3 scripts/timesheet_cli.py --demo reject 3 --comment "missing hours"
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import TextIO

from timesheet_config import TimesheetAppConfig, get_active_config
from timesheet_kernel.domain.timesheet import TimesheetRecord, TimesheetStatus
from timesheet_kernel.domain.viewer import (
    EMPLOYEE_LIST_VIEW,
    MANAGER_LIST_VIEW,
    ListViewConfig,
    ViewerIdentity,
)
from timesheet_kernel.exceptions import TimesheetKernelError
from timesheet_kernel.logging_config import configure_logging
from timesheet_services import (
    HttpTimesheetGateway,
    InMemoryTimesheetGateway,
    ListViewState,
    SubmissionForm,
    TimesheetGateway,
)
from timesheet_services.submission_flow import SubmissionConfirmation


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="List, submit and review timesheets.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--config",
        default=None,
        help="YAML config file (default: TIMESHEET_CONFIG_PATH or packaged defaults).",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use a seeded in-process service instead of HTTP.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit structured logs to stderr at the configured level.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="Show a page of the submission list.")
    list_cmd.add_argument("--as", dest="scope", choices=("employee", "manager"), default="employee")
    list_cmd.add_argument(
        "--status",
        choices=("ALL", "PENDING", "APPROVED", "REJECTED"),
        default="ALL",
        type=str.upper,
    )
    list_cmd.add_argument("--page", type=int, default=1)
    list_cmd.add_argument("--width", type=int, default=None, help="Viewport width in pixels.")

    submit_cmd = commands.add_parser("submit", help="Submit a new timesheet as the employee.")
    submit_cmd.add_argument(
        "--set",
        dest="fields",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Form field, camelCase (repeatable).",
    )

    approve_cmd = commands.add_parser("approve", help="Approve a pending timesheet.")
    approve_cmd.add_argument("record_id")

    reject_cmd = commands.add_parser("reject", help="Reject a pending timesheet.")
    reject_cmd.add_argument("record_id")
    reject_cmd.add_argument("--comment", required=True)

    delete_cmd = commands.add_parser("delete", help="Delete one of the employee's pending timesheets.")
    delete_cmd.add_argument("record_id")

    return parser.parse_args(argv)


# =============================================================================
# Wiring
# =============================================================================


def _demo_records(config: TimesheetAppConfig) -> list[TimesheetRecord]:
    employee = config.employee
    statuses = (
        TimesheetStatus.APPROVED,
        TimesheetStatus.PENDING,
        TimesheetStatus.REJECTED,
        TimesheetStatus.PENDING,
        TimesheetStatus.APPROVED,
        TimesheetStatus.PENDING,
        TimesheetStatus.PENDING,
    )
    records = []
    for week, status in enumerate(statuses):
        start = date.fromordinal(date(2024, 1, 1).toordinal() + 7 * week)
        end = date.fromordinal(start.toordinal() + 4)
        records.append(TimesheetRecord(
            id=str(week + 1),
            start_date=start,
            end_date=end,
            number_of_hours=Decimal("40"),
            extra_hours=Decimal("2") if week % 3 == 0 else None,
            client_name="Acme",
            project_name="Portal",
            task_type="development",
            work_location="office",
            reporting_manager=config.manager.display_name,
            on_call_support=week % 2 == 0,
            employee_id=employee.viewer_id,
            employee_name=employee.display_name,
            manager_id=employee.manager_id,
            status=status,
            comments="incomplete" if status is TimesheetStatus.REJECTED else None,
        ))
    return records


def _gateway(config: TimesheetAppConfig, demo: bool) -> TimesheetGateway:
    if demo:
        return InMemoryTimesheetGateway(_demo_records(config))
    service = config.service
    return HttpTimesheetGateway(
        service.base_url,
        api_prefix=service.api_prefix,
        timeout_seconds=service.timeout_seconds,
        duplicate_status_codes=service.duplicate_status_codes,
    )


def _open_view(
    config: TimesheetAppConfig,
    gateway: TimesheetGateway,
    scope: str,
    width: int | None = None,
) -> ListViewState:
    identity: ViewerIdentity
    view_config: ListViewConfig
    if scope == "manager":
        identity = config.manager
        view_config = replace(MANAGER_LIST_VIEW, page_size_policy=config.views.manager)
    else:
        identity = config.employee
        view_config = replace(EMPLOYEE_LIST_VIEW, page_size_policy=config.views.employee)
    return ListViewState(view_config, identity, gateway, viewport_width=width)


# =============================================================================
# Commands
# =============================================================================


def _print_list(view: ListViewState, out: TextIO) -> None:
    counts = view.counts()
    print(
        f"Total: {counts.total}  Pending: {counts.pending}  "
        f"Approved: {counts.approved}  Rejected: {counts.rejected}",
        file=out,
    )
    headers = ("ID",) + tuple(c.label for c in view.config.columns) + ("Actions",)
    page = view.current_view()
    table = [headers]
    for record, cells in zip(page.page_records, view.rows()):
        actions = ",".join(sorted(a.value for a in view.available_actions(record)))
        table.append((record.id, *cells, actions or "-"))
    widths = [max(len(row[i]) for row in table) for i in range(len(headers))]
    for row in table:
        print("  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip(), file=out)
    if page.show_pagination:
        print(
            f"Showing {page.from_index} to {page.to_index} of {page.filtered_count} results"
            f"  (page {page.page} of {page.total_pages})",
            file=out,
        )
    else:
        print("No timesheets found.", file=out)


def _submit(view: ListViewState, fields: Sequence[str], out: TextIO) -> int:
    form = SubmissionForm(view.controller)
    for item in fields:
        name, sep, value = item.partition("=")
        if not sep:
            print(f"ERROR: expected FIELD=VALUE, got {item!r}", file=sys.stderr)
            return 2
        form.change(name.strip(), value)
    outcome = form.submit()
    if outcome is None:
        print(f"ERROR: {form.error}", file=sys.stderr)
        return 1
    if not isinstance(outcome, SubmissionConfirmation):
        print(f"ERROR: unexpected submission outcome {type(outcome).__name__}", file=sys.stderr)
        return 1
    for label, value in outcome.display_rows():
        print(f"{label}: {value}", file=out)
    record = outcome.confirm(view)
    print(f"Submitted timesheet {record.id} ({record.status.value})", file=out)
    return 0


def run(argv: Sequence[str] | None = None, out: TextIO | None = None) -> int:
    args = _parse_args(argv)
    out = out or sys.stdout

    config = get_active_config(args.config)
    if args.verbose:
        configure_logging(level=getattr(logging, config.log_level), stream=sys.stderr)

    gateway = _gateway(config, args.demo)
    scope = "manager" if args.command in ("approve", "reject") else getattr(args, "scope", "employee")
    view = _open_view(config, gateway, scope, getattr(args, "width", None))
    if not view.refresh():
        print("ERROR: could not load timesheets from the service", file=sys.stderr)
        return 1

    try:
        if args.command == "list":
            view.set_filter(args.status)
            view.go_to_page(args.page)
            _print_list(view, out)
        elif args.command == "submit":
            return _submit(view, args.fields, out)
        elif args.command == "approve":
            record = view.approve(args.record_id)
            print(f"Timesheet {record.id} is {record.status.value}", file=out)
        elif args.command == "reject":
            intent = view.controller.begin_rejection(args.record_id)
            record = view.reject(intent.with_comment(args.comment))
            print(f"Timesheet {record.id} is {record.status.value}: {record.comments}", file=out)
        elif args.command == "delete":
            view.delete(args.record_id)
            print(f"Timesheet {args.record_id} deleted", file=out)
    except TimesheetKernelError as exc:
        message = getattr(exc, "user_message", None) or str(exc)
        print(f"ERROR [{exc.code}]: {message}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    return 0


def main() -> int:
    return run()


if __name__ == "__main__":
    sys.exit(main())
