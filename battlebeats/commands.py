import click
from flask.cli import with_appcontext
from battlebeats.models.genre import DEFAULT_GENRES, MAX_GENRES
from battlebeats.services.storage import storage


@click.command('seed-genres')
@with_appcontext
@click.option('--max-trial-slots', default=100, show_default=True, help='Trial slots per new genre.')
def seed_genres(max_trial_slots):
    """Create the default genres that do not exist yet."""
    existing = {genre.name for genre in storage.get_genres()}
    created = 0
    for name in DEFAULT_GENRES:
        if name in existing:
            continue
        if len(existing) + created >= MAX_GENRES:
            break
        storage.create_genre(name, max_trial_slots)
        created += 1
    click.echo(f"Created {created} genre(s)")


@click.command('close-expired-battles')
@with_appcontext
def close_expired_battles():
    """End every active battle whose deadline has passed."""
    closed = storage.close_expired_battles()
    click.echo(f"Closed {closed} battle(s)")


@click.command('purge-sessions')
@with_appcontext
def purge_sessions():
    """Delete expired login sessions."""
    deleted = storage.purge_expired_sessions()
    click.echo(f"Deleted {deleted} expired session(s)")


def register_commands(app):
    app.cli.add_command(seed_genres)
    app.cli.add_command(close_expired_battles)
    app.cli.add_command(purge_sessions)
