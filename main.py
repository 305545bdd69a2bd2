import logging, sys

import click

from highscores import settings
from highscores.leaderboard import LocalLedger
from highscores.reconciler import ScoreReconciler
from highscores.remote import HttpScoreStore
from highscores.storage import FileBlobStore
from highscores.types import ClearStatus, UserIdentity


def build_reconciler(data_dir, api_url) -> ScoreReconciler:
    ledger = LocalLedger(FileBlobStore(data_dir))
    remote = HttpScoreStore(api_url) if api_url else None
    return ScoreReconciler(ledger, remote)


def identity_from(user, token):
    return UserIdentity(user, token) if user else None


@click.group()
@click.option("--data-dir", type=click.Path(file_okay=False), default=None, help="Where the local leaderboard lives.")
@click.option("--api-url", default=None, help="Remote score store; empty means offline.")
@click.option("-v", "--verbose", is_flag=True)
@click.pass_context
def cli(ctx, data_dir, api_url, verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = build_reconciler(
        data_dir or settings.data_dir(),
        settings.API_URL if api_url is None else api_url,
    )


@cli.command()
@click.argument("value", type=click.IntRange(min=0))
@click.option("--user", default=None)
@click.option("--token", default=None)
@click.pass_obj
def submit(rec: ScoreReconciler, value, user, token):
    """Record a finished quiz score."""
    outcome = rec.submit(value, identity_from(user, token))
    click.echo(f"saved {outcome.entry.value} as {outcome.entry.id} (remote: {outcome.sync.value})")
    if outcome.error:
        click.echo(f"  {outcome.error}", err=True)


@cli.command(name="list")
@click.option("--user", default=None)
@click.option("--token", default=None)
@click.pass_obj
def list_scores(rec: ScoreReconciler, user, token):
    """Show the leaderboard."""
    entries = rec.fetch_leaderboard(identity_from(user, token))
    if not entries:
        click.echo("no scores yet")
        return
    for rank, e in enumerate(entries, 1):
        mark = "" if e.recorded_at_remote is None else " *"
        click.echo(f"{rank:2d}. {e.value:5d}  {e.id}{mark}")


@cli.command(name="clear-local")
@click.pass_obj
def clear_local(rec: ScoreReconciler):
    """Delete the scores stored on this machine."""
    rec.clear_local()
    click.echo("local scores cleared")


@cli.command(name="clear-remote")
@click.option("--user", required=True)
@click.option("--token", default=None)
@click.pass_obj
def clear_remote(rec: ScoreReconciler, user, token):
    """Delete every remote score of a user."""
    result = rec.clear_remote(identity_from(user, token))
    click.echo(f"{result.status.value}: {len(result.deleted)} deleted")
    for eid, err in result.failures.items():
        click.echo(f"  {eid}: {err}", err=True)
    if result.error:
        click.echo(f"  {result.error}", err=True)
    if result.status is not ClearStatus.CLEARED:
        sys.exit(1)


if __name__ == "__main__":
    cli()
