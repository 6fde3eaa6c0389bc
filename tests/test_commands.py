from datetime import datetime, timedelta

from battlebeats.models import BattleStatus, Genre, UserRole
from battlebeats.models.genre import MAX_GENRES


def test_seed_genres_fills_up_to_cap(app, make_genre):
    make_genre("Jazz")
    runner = app.test_cli_runner()

    result = runner.invoke(args=['seed-genres', '--max-trial-slots', '5'])
    again = runner.invoke(args=['seed-genres'])

    assert result.exit_code == 0
    assert 'Created 7 genre(s)' in result.output
    assert 'Created 0 genre(s)' in again.output
    assert Genre.query.count() == MAX_GENRES
    assert Genre.query.filter_by(name="Rock").one().max_trial_slots == 5


def test_close_expired_battles_command(app, make_user, make_battle):
    creator = make_user(role=UserRole.participant)
    expired = make_battle(creator, title="Yesterday", ends_at=datetime.utcnow() - timedelta(days=1))
    running = make_battle(creator, title="Tomorrow")

    result = app.test_cli_runner().invoke(args=['close-expired-battles'])

    assert 'Closed 1 battle(s)' in result.output
    assert expired.status == BattleStatus.ended
    assert running.status == BattleStatus.active
