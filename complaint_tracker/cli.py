"""
CLI interface for the Complaint Tracker.

Commands:
    add-user         — Register a user who can file complaints
    file             — File a new complaint
    status           — Move a complaint to another status
    respond          — Post a staff response to a complaint
    remove-response  — Detach a response from a complaint
    show             — Show one complaint and its responses
    list             — List complaints
    delete           — Delete a complaint and its responses
    stats            — Show complaint statistics
"""

from __future__ import annotations

import functools
import json
import logging
from datetime import date, datetime
from typing import Optional

import click

from complaint_tracker import __version__
from complaint_tracker.config import load_config
from complaint_tracker.errors import TrackerError
from complaint_tracker.tracker.models import Complaint, ComplaintStatus

STATUS_CHOICES = [s.value for s in ComplaintStatus]


def handle_errors(func):
    """Turn tracker errors into a clean CLI failure (exit status 1)."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except TrackerError as e:
            raise click.ClickException(str(e))

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.version_option(version=__version__, prog_name="complaint-tracker")
@click.option("--db", default=None, help="Database URL (overrides config and environment).")
@click.option("--config", "config_path", default=None, type=click.Path(dir_okay=False),
              help="Path to a JSON config file.")
@click.option("--strict", is_flag=True, help="Enforce the status transition table.")
@click.option("--verbose", "-v", is_flag=True, help="Log debug output.")
@click.pass_context
def cli(
    ctx: click.Context,
    db: Optional[str],
    config_path: Optional[str],
    strict: bool,
    verbose: bool,
) -> None:
    """Complaint Tracker — file complaints, review them, and respond."""
    try:
        config = load_config(config_path)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        raise click.BadParameter(str(e), param_hint="--config")
    if db:
        config.db_url = db
    if strict:
        config.strict_transitions = True

    logging.basicConfig(
        level=logging.DEBUG if verbose else config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    ctx.ensure_object(dict)
    ctx.obj["config"] = config


def _get_tracker(ctx: click.Context):
    from complaint_tracker.tracker.database import ComplaintDB
    from complaint_tracker.tracker.tracker import ComplaintTracker

    if "tracker" not in ctx.obj:
        config = ctx.obj["config"]
        db = ComplaintDB(config.db_url)
        ctx.obj["db"] = db
        ctx.obj["tracker"] = ComplaintTracker(
            db, users=db, strict_transitions=config.strict_transitions
        )
    return ctx.obj["tracker"]


# ---------------------------------------------------------------------------
# add-user
# ---------------------------------------------------------------------------

@cli.command(name="add-user")
@click.option("--username", "-u", required=True, help="Unique username.")
@click.option("--email", "-e", default="", help="Contact email.")
@click.pass_context
@handle_errors
def add_user(ctx: click.Context, username: str, email: str) -> None:
    """Register a user who can file complaints."""
    _get_tracker(ctx)
    user = ctx.obj["db"].create_user(username, email)
    click.echo(f"Created user #{user.id} ({user.username})")


# ---------------------------------------------------------------------------
# file
# ---------------------------------------------------------------------------

@cli.command(name="file")
@click.option("--owner", "-o", "owner_id", type=int, required=True, help="Id of the filing user.")
@click.option("--subject", "-s", required=True, help="Short subject line (max 255 chars).")
@click.option("--description", "-d", required=True, help="What went wrong (max 255 chars).")
@click.option("--date", "filed_on", default=None, help="Filing date (YYYY-MM-DD, default: today).")
@click.pass_context
@handle_errors
def file_complaint(
    ctx: click.Context,
    owner_id: int,
    subject: str,
    description: str,
    filed_on: Optional[str],
) -> None:
    """File a new complaint."""
    tracker = _get_tracker(ctx)
    complaint = tracker.file(
        owner_id,
        subject,
        description,
        filed_date=_parse_date(filed_on) if filed_on else None,
    )
    click.echo(f"Filed complaint #{complaint.id} (status: {complaint.status.value})")


# ---------------------------------------------------------------------------
# status
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--id", "complaint_id", type=int, required=True, help="Complaint id.")
@click.argument("new_status", type=click.Choice(STATUS_CHOICES, case_sensitive=False))
@click.pass_context
@handle_errors
def status(ctx: click.Context, complaint_id: int, new_status: str) -> None:
    """Move a complaint to NEW_STATUS."""
    tracker = _get_tracker(ctx)
    complaint = tracker.get_complaint(complaint_id)
    tracker.set_status(complaint, new_status)
    click.echo(f"Updated complaint #{complaint.id} to status: {complaint.status.value}")


# ---------------------------------------------------------------------------
# respond / remove-response
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--id", "complaint_id", type=int, required=True, help="Complaint id.")
@click.option("--body", "-b", required=True, help="Response text (max 255 chars).")
@click.option("--date", "responded_on", default=None, help="Response date (YYYY-MM-DD, default: today).")
@click.pass_context
@handle_errors
def respond(ctx: click.Context, complaint_id: int, body: str, responded_on: Optional[str]) -> None:
    """Post a staff response to a complaint."""
    tracker = _get_tracker(ctx)
    complaint = tracker.get_complaint(complaint_id)
    response = tracker.add_response(
        complaint, body, responded_date=_parse_date(responded_on) if responded_on else None
    )
    click.echo(f"Added response #{response.id} to complaint #{complaint.id}")


@cli.command(name="remove-response")
@click.option("--id", "complaint_id", type=int, required=True, help="Complaint id.")
@click.option("--response-id", type=int, required=True, help="Response id.")
@click.pass_context
@handle_errors
def remove_response(ctx: click.Context, complaint_id: int, response_id: int) -> None:
    """Detach a response from a complaint."""
    tracker = _get_tracker(ctx)
    complaint = tracker.get_complaint(complaint_id)
    response = complaint.find_response(response_id)
    if response is None or not tracker.remove_response(complaint, response):
        click.echo(f"Response #{response_id} is not linked to complaint #{complaint_id}.")
        return
    click.echo(f"Removed response #{response_id} from complaint #{complaint_id}")


# ---------------------------------------------------------------------------
# show / list
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--id", "complaint_id", type=int, required=True, help="Complaint id.")
@click.option("--json-output", is_flag=True, help="Output as JSON instead of plain text.")
@click.pass_context
@handle_errors
def show(ctx: click.Context, complaint_id: int, json_output: bool) -> None:
    """Show one complaint and its responses."""
    tracker = _get_tracker(ctx)
    complaint = tracker.get_complaint(complaint_id)

    if json_output:
        click.echo(json.dumps(complaint.to_dict(), indent=2, ensure_ascii=False))
        return

    click.echo(f"Complaint #{complaint.id}")
    click.echo(f"  Owner:       #{complaint.owner_id}")
    click.echo(f"  Subject:     {complaint.subject}")
    click.echo(f"  Description: {complaint.description}")
    click.echo(f"  Filed:       {complaint.filed_date.isoformat()}")
    click.echo(f"  Status:      {complaint.status.value}")
    responses = tracker.list_responses(complaint)
    if not responses:
        click.echo("  Responses:   none")
        return
    click.echo(f"  Responses ({len(responses)}):")
    for response in responses:
        click.echo(f"    #{response.id} [{response.responded_date.isoformat()}] {response.body}")


@cli.command(name="list")
@click.option("--owner", "owner_id", type=int, default=None, help="Filter by owner id.")
@click.option("--status", "status_filter", default=None,
              type=click.Choice(STATUS_CHOICES, case_sensitive=False), help="Filter by status.")
@click.option("--limit", default=100, type=int, help="Maximum rows to show.")
@click.pass_context
@handle_errors
def list_complaints(
    ctx: click.Context,
    owner_id: Optional[int],
    status_filter: Optional[str],
    limit: int,
) -> None:
    """List complaints, newest first."""
    tracker = _get_tracker(ctx)
    complaints = tracker.list_complaints(owner_id=owner_id, status=status_filter, limit=limit)
    if not complaints:
        click.echo("No complaints.")
        return

    click.echo(f"Complaints ({len(complaints)}):")
    for complaint in complaints:
        click.echo(_format_row(complaint))


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--id", "complaint_id", type=int, required=True, help="Complaint id.")
@click.confirmation_option(prompt="Delete this complaint and all of its responses?")
@click.pass_context
@handle_errors
def delete(ctx: click.Context, complaint_id: int) -> None:
    """Delete a complaint and its responses."""
    tracker = _get_tracker(ctx)
    tracker.delete_complaint(complaint_id)
    click.echo(f"Deleted complaint #{complaint_id}")


# ---------------------------------------------------------------------------
# stats
# ---------------------------------------------------------------------------

@cli.command()
@click.option("--json-output", is_flag=True, help="Output as JSON instead of plain text.")
@click.pass_context
@handle_errors
def stats(ctx: click.Context, json_output: bool) -> None:
    """Show complaint statistics."""
    stats_data = _get_tracker(ctx).get_stats()

    if json_output:
        click.echo(json.dumps(stats_data, indent=2))
        return

    click.echo("=== Complaint Tracker Statistics ===")
    click.echo(f"Total complaints: {stats_data['total']}")
    click.echo(f"Open: {stats_data['open']}")
    click.echo(f"Awaiting first response: {stats_data['unanswered']}")
    click.echo("\nBy status:")
    for status_name, count in stats_data["by_status"].items():
        click.echo(f"  {status_name:12s}: {count}")


# ---------------------------------------------------------------------------
# Utility
# ---------------------------------------------------------------------------

def _format_row(complaint: Complaint) -> str:
    return (
        f"  #{complaint.id:4d} | {complaint.filed_date.isoformat()} | "
        f"owner #{complaint.owner_id:<4d} | {complaint.status.value:9s} | "
        f"{len(complaint.responses):2d} resp | {complaint.subject[:40]}"
    )


def _parse_date(s: str) -> date:
    try:
        return datetime.strptime(s, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Invalid date format: {s}. Use YYYY-MM-DD.")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
