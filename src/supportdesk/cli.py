"""Support Desk CLI: Typer app with all subcommands."""

from __future__ import annotations

import json
from typing import Optional

import typer

app = typer.Typer(
    name="supportdesk",
    help="Support inbox assistant: classify customer emails and draft replies.",
    no_args_is_help=True,
)


def _load():
    from supportdesk.config import load_config
    from supportdesk.log import configure_logging

    config = load_config()
    configure_logging(config.logging.level)
    return config


def _context():
    from supportdesk.handlers import HandlerContext

    return HandlerContext.from_config(_load())


# --- Database commands ---

db_app = typer.Typer(help="Database management commands.")
app.add_typer(db_app, name="db")


@db_app.callback(invoke_without_command=True)
def db_callback(
    ctx: typer.Context,
    reset: bool = typer.Option(False, "--reset", help="Wipe and recreate the database."),
    stats: bool = typer.Option(False, "--stats", help="Show row counts for all tables."),
):
    """Database management."""
    from supportdesk.database import db_stats, make_engine, make_session_factory, reset_db

    config = _load()
    engine = make_engine(config.storage.database_url)

    if reset:
        reset_db(engine)
        typer.echo("Database reset and initialized.")
        return

    if stats:
        from supportdesk.database import init_db

        init_db(engine)
        s = db_stats(make_session_factory(engine))
        typer.echo("Table row counts:")
        for table, count in s.items():
            typer.echo(f"  {table:20s} {count}")
        return

    # No flags: show help
    typer.echo(ctx.get_help())


# --- Pipeline commands ---

@app.command()
def process(
    sender: str = typer.Option(..., "--from", "-f", help="Sender address."),
    subject: str = typer.Option(..., "--subject", "-s", help="Email subject."),
    body: str = typer.Option(..., "--body", "-b", help="Email body text."),
    user: str = typer.Option(..., "--user", "-u", help="Owner id the email belongs to."),
):
    """Run a single email through classification and reply drafting."""
    from supportdesk.handlers import handle_process_email

    ctx = _context()
    result = handle_process_email(ctx, sender_email=sender, subject=subject, body=body, user_id=user)

    if not result.processed:
        typer.echo(f"Not processed: {result.reason}")
        return

    outcome = result.outcome
    c = outcome.classification
    typer.echo(f"Stored email {result.email['id']}")
    typer.echo(f"  Sentiment: {c.sentiment.value}  Priority: {c.priority.value}  Category: {c.category}")
    if c.urgency_keywords:
        typer.echo(f"  Urgency keywords: {', '.join(c.urgency_keywords)}")
    if outcome.is_degraded:
        typer.echo(f"  Classification fell back to defaults: {outcome.reason}")
    typer.echo(f"\nDraft response ({result.response['id']}):\n")
    typer.echo(result.response["generated_response"])


@app.command()
def ingest(
    user: str = typer.Option(..., "--user", "-u", help="Owner id to ingest mail for."),
    demo: bool = typer.Option(False, "--demo", help="Read the built-in sample mailbox."),
):
    """Fetch unread mail and process new support emails."""
    from supportdesk.handlers import handle_fetch_emails

    ctx = _context()
    if demo:
        from supportdesk.mail.demo import DemoMailbox

        ctx.mailbox_factory = DemoMailbox

    def progress(current, total, forwarded):
        typer.echo(f"  [{current}/{total}] {forwarded} processed")

    result = handle_fetch_emails(ctx, user, progress_callback=progress)
    typer.echo(result["message"])


@app.command()
def send(
    response_id: str = typer.Argument(..., help="Response id to deliver."),
    to: Optional[str] = typer.Option(None, "--to", help="Recipient (default: original sender)."),
    text: Optional[str] = typer.Option(None, "--text", help="Final text (default: edited or generated draft)."),
):
    """Send a drafted response and mark it resolved."""
    from supportdesk.gateway import AlreadySentError, NotFoundError
    from supportdesk.handlers import handle_send_response

    ctx = _context()
    response = ctx.gateway.get_response(response_id)
    if response is None:
        typer.echo(f"Response {response_id} not found.", err=True)
        raise typer.Exit(1)

    email = ctx.gateway.get_email(response["email_id"]) or {}
    recipient = to or email.get("sender_email")
    if not recipient:
        typer.echo("No recipient: pass --to.", err=True)
        raise typer.Exit(1)
    final_text = text or response["edited_response"] or response["generated_response"]

    try:
        result = handle_send_response(ctx, response_id, final_text, recipient)
    except (AlreadySentError, NotFoundError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(1)

    typer.echo(f"{result['message']}: {recipient}")


# --- Inspection commands ---

@app.command()
def emails(
    user: str = typer.Option(..., "--user", "-u", help="Owner id."),
    limit: int = typer.Option(20, "--limit", "-n", help="Max rows."),
    fmt: str = typer.Option("table", "--format", help="Output format: table or json."),
):
    """List stored emails, urgent first."""
    from supportdesk.handlers import list_emails

    rows = list_emails(_context(), user, limit=limit)

    if fmt == "json":
        typer.echo(json.dumps(rows, indent=2))
        return

    if not rows:
        typer.echo("No emails stored.")
        return

    for e in rows:
        resp = e.get("response") or {}
        state = "sent" if resp.get("sent") else ("drafted" if resp else "stored")
        typer.echo(
            f"  {e['received_at'][:16]}  {e['priority']:6s}  {(e['sentiment'] or '-'):8s}  "
            f"{state:7s}  {e['sender_email']:30s}  {e['subject'][:50]}"
        )
        if resp and not resp.get("sent"):
            typer.echo(f"      response: {resp['id']}")


@app.command()
def stats(
    user: str = typer.Option(..., "--user", "-u", help="Owner id."),
    days: int = typer.Option(7, "--days", "-d", help="Days of history."),
):
    """Show daily analytics counters."""
    from supportdesk.handlers import analytics_summary

    summary = analytics_summary(_context(), user, days=days)
    t = summary["today"]
    typer.echo(f"Today ({t['date']}):")
    typer.echo(f"  Total:    {t['total_emails']}")
    typer.echo(f"  Urgent:   {t['urgent_emails']}")
    typer.echo(f"  Pending:  {t['pending_emails']}")
    typer.echo(f"  Resolved: {t['resolved_emails']}")
    typer.echo(
        f"  Sentiment: +{t['positive_sentiment']} / ={t['neutral_sentiment']} / -{t['negative_sentiment']}"
    )

    if summary["history"]:
        typer.echo("\nHistory:")
        for row in summary["history"]:
            typer.echo(
                f"  {row['date']}  total={row['total_emails']:<4d} urgent={row['urgent_emails']:<4d} "
                f"pending={row['pending_emails']:<4d} resolved={row['resolved_emails']}"
            )


# --- Web ---

@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", "-h", help="Bind host (default: web.host)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default: web.port)."),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload for development."),
):
    """Start the HTTP API and admin interface."""
    import uvicorn

    config = _load()
    host = host or config.web.host
    port = port or config.web.port
    typer.echo(f"Starting Support Desk at http://{host}:{port}/admin")
    uvicorn.run(
        "supportdesk.web.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


if __name__ == "__main__":
    app()
