from datetime import datetime, timedelta

from battlebeats.models import Genre, MAX_GENRES, UserRole


def _battle_payload(**overrides):
    payload = {
        'title': 'Boom Bap Showdown',
        'ends_at': (datetime.utcnow() + timedelta(days=3)).isoformat() + 'Z',
        'prize_pool': '25.00',
    }
    payload.update(overrides)
    return payload


def test_list_genres_is_public(client, make_genre):
    make_genre("Jazz")

    response = client.get('/api/genres')

    assert response.status_code == 200
    assert [genre['name'] for genre in response.get_json()] == ["Jazz"]


def test_only_admins_create_genres(client, make_user, auth_headers):
    listener = make_user()
    admin = make_user(role=UserRole.admin)

    denied = client.post('/api/genres', json={'name': 'Rock'}, headers=auth_headers(listener))
    created = client.post('/api/genres', json={'name': 'Rock', 'max_trial_slots': 10}, headers=auth_headers(admin))

    assert denied.status_code == 403
    assert created.status_code == 201
    assert created.get_json()['max_trial_slots'] == 10


def test_ninth_genre_is_rejected(client, make_user, make_genre, auth_headers):
    admin = make_user(role=UserRole.admin)
    for i in range(8):
        make_genre(f"Genre {i}")

    response = client.post('/api/genres', json={'name': 'Polka'}, headers=auth_headers(admin))

    assert response.status_code == 400
    assert response.get_json()['message'] == "Maximum number of genres reached"


def test_concurrent_genre_creates_respect_the_cap(app, make_user, make_genre, auth_headers, run_concurrently):
    admin = make_user(role=UserRole.admin)
    for i in range(MAX_GENRES - 1):
        make_genre(f"Genre {i}")
    headers = auth_headers(admin)

    responses = run_concurrently(
        ('post', '/api/genres', {'json': {'name': 'Polka'}, 'headers': headers}),
        ('post', '/api/genres', {'json': {'name': 'Reggae'}, 'headers': headers}),
    )

    assert sorted(response.status_code for response in responses) == [201, 400]
    rejected = next(response for response in responses if response.status_code == 400)
    assert rejected.get_json()['message'] == "Maximum number of genres reached"
    assert Genre.query.count() == MAX_GENRES
    assert sorted(genre.slot for genre in Genre.query.all()) == list(range(1, MAX_GENRES + 1))


def test_json_body_that_is_not_an_object_is_rejected(client, make_user, auth_headers):
    response = client.post('/api/trial-slots', json=[1], headers=auth_headers(make_user()))

    assert response.status_code == 400
    assert response.get_json()['message'] == 'A valid genre_id is required'


def test_participant_creates_battle(client, make_user, make_genre, auth_headers):
    participant = make_user(role=UserRole.participant)
    genre = make_genre("Hip-Hop")

    response = client.post(
        '/api/battles',
        json=_battle_payload(genre_id=str(genre.id)),
        headers=auth_headers(participant),
    )

    assert response.status_code == 201
    battle = response.get_json()
    assert battle['created_by_id'] == str(participant.id)
    assert battle['genre_id'] == str(genre.id)
    assert battle['status'] == 'active'
    assert battle['prize_pool'] == 25.0


def test_listener_cannot_create_battle(client, make_user, auth_headers):
    listener = make_user()

    response = client.post('/api/battles', json=_battle_payload(), headers=auth_headers(listener))

    assert response.status_code == 403


def test_create_battle_requires_login(client):
    response = client.post('/api/battles', json=_battle_payload())

    assert response.status_code == 401


def test_create_battle_validates_input(client, make_user, auth_headers):
    participant = make_user(role=UserRole.participant)

    response = client.post(
        '/api/battles',
        json=_battle_payload(ends_at='next friday'),
        headers=auth_headers(participant),
    )

    assert response.status_code == 400


def test_create_battle_with_unknown_genre_is_404(client, make_user, auth_headers):
    participant = make_user(role=UserRole.participant)

    response = client.post(
        '/api/battles',
        json=_battle_payload(genre_id='00000000-0000-0000-0000-000000000000'),
        headers=auth_headers(participant),
    )

    assert response.status_code == 404


def test_list_battles_filters_by_genre(client, make_user, make_genre, make_battle):
    creator = make_user(role=UserRole.participant)
    jazz, rock = make_genre("Jazz"), make_genre("Rock")
    make_battle(creator, jazz, title="Jazz Night")
    make_battle(creator, rock, title="Rock Night")

    response = client.get(f'/api/battles?genre_id={jazz.id}')

    assert response.status_code == 200
    battles = response.get_json()
    assert [battle['title'] for battle in battles] == ["Jazz Night"]
    assert all(battle['genre_id'] == str(jazz.id) for battle in battles)


def test_list_battles_rejects_unknown_status(client):
    assert client.get('/api/battles?status=paused').status_code == 400


def test_get_battle_not_found(client):
    response = client.get('/api/battles/00000000-0000-0000-0000-000000000000')

    assert response.status_code == 404
    assert response.get_json()['message'] == 'Battle not found'


def test_admin_moves_battle_status(client, make_user, make_battle, auth_headers):
    admin = make_user(role=UserRole.admin)
    battle = make_battle(make_user(role=UserRole.participant), status='pending')

    response = client.patch(
        f'/api/battles/{battle.id}/status',
        json={'status': 'ended'},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.get_json()['status'] == 'ended'


def test_participant_submits_track_and_lists_it(client, make_user, make_battle, auth_headers):
    participant = make_user(role=UserRole.participant)
    battle = make_battle(participant)

    response = client.post(
        '/api/tracks',
        json={
            'title': 'Midnight Loop',
            'battle_id': str(battle.id),
            'bandlab_url': 'https://www.bandlab.com/track/abc',
            'duration': 184,
        },
        headers=auth_headers(participant),
    )
    listing = client.get(f'/api/battles/{battle.id}/tracks')

    assert response.status_code == 201
    assert response.get_json()['artist_id'] == str(participant.id)
    assert [track['title'] for track in listing.get_json()] == ['Midnight Loop']


def test_listener_cannot_submit_track(client, make_user, make_battle, auth_headers):
    listener = make_user()
    battle = make_battle(make_user(role=UserRole.participant))

    response = client.post(
        '/api/tracks',
        json={'title': 'Nope', 'battle_id': str(battle.id)},
        headers=auth_headers(listener),
    )

    assert response.status_code == 403


def test_flag_track_records_rating(client, make_user, make_battle, make_track, auth_headers):
    artist = make_user(role=UserRole.participant)
    track = make_track(artist, make_battle(artist))
    reporter = make_user()

    response = client.post(f'/api/tracks/{track.id}/flag', json={'rating': '18+'}, headers=auth_headers(reporter))

    assert response.status_code == 200
    assert response.get_json()['rating'] == '18+'
    assert response.get_json()['flagged_by'] == [str(reporter.id)]
