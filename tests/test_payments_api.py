import hashlib
import hmac
import json
import time

import pytest
import stripe

from battlebeats.extensions.extension import db
from battlebeats.models import Payment, SubscriptionStatus, User, UserRole

WEBHOOK_SECRET = 'whsec_test'


@pytest.fixture
def fake_stripe(monkeypatch):
    calls = {'customers': [], 'intents': [], 'retrieved': []}

    def payment_intent(intent_id):
        return stripe.PaymentIntent.construct_from({
            'id': intent_id,
            'object': 'payment_intent',
            'client_secret': f'{intent_id}_secret',
            'status': 'requires_payment_method',
        }, 'sk_test_dummy')

    def create_customer(**kwargs):
        calls['customers'].append(kwargs)
        return stripe.Customer.construct_from({'id': 'cus_test_1', 'object': 'customer'}, 'sk_test_dummy')

    def create_intent(**kwargs):
        calls['intents'].append(kwargs)
        return payment_intent('pi_test_1')

    def retrieve_intent(intent_id):
        calls['retrieved'].append(intent_id)
        return payment_intent(intent_id)

    monkeypatch.setattr(stripe.Customer, 'create', create_customer)
    monkeypatch.setattr(stripe.PaymentIntent, 'create', create_intent)
    monkeypatch.setattr(stripe.PaymentIntent, 'retrieve', retrieve_intent)
    return calls


def _payment_event(user, event_type='payment_intent.succeeded', intent_id='pi_test_1', **fields):
    payment_object = {
        'id': intent_id,
        'object': 'payment_intent',
        'amount': 499,
        'amount_received': 499,
        'currency': 'usd',
        'customer': 'cus_test_1',
        'metadata': {'user_id': str(user.id), 'subscription_type': 'participant'},
    }
    payment_object.update(fields)
    return {'id': 'evt_test_1', 'object': 'event', 'type': event_type, 'data': {'object': payment_object}}


def _post_event(client, event):
    return client.post('/api/webhook', data=json.dumps(event), content_type='application/json')


def _signature_header(payload, secret=WEBHOOK_SECRET):
    timestamp = int(time.time())
    signature = hmac.new(secret.encode(), f'{timestamp}.{payload}'.encode(), hashlib.sha256).hexdigest()
    return f't={timestamp},v1={signature}'


def test_subscription_creation_does_not_activate_user(client, make_user, auth_headers, fake_stripe):
    user = make_user()

    response = client.post('/api/get-or-create-subscription', headers=auth_headers(user))

    assert response.status_code == 200
    assert response.get_json()['client_secret'] == 'pi_test_1_secret'
    assert fake_stripe['intents'][0]['amount'] == 499
    assert fake_stripe['intents'][0]['metadata']['user_id'] == str(user.id)

    user = db.session.get(User, user.id)
    assert user.stripe_customer_id == 'cus_test_1'
    assert user.stripe_subscription_id == 'pi_test_1'
    assert user.subscription_status == SubscriptionStatus.inactive


def test_existing_subscription_is_retrieved(client, make_user, auth_headers, fake_stripe):
    user = make_user(stripe_customer_id='cus_old', stripe_subscription_id='pi_old')

    response = client.post('/api/get-or-create-subscription', headers=auth_headers(user))

    assert response.status_code == 200
    assert response.get_json()['subscription_id'] == 'pi_old'
    assert response.get_json()['client_secret'] == 'pi_old_secret'
    assert fake_stripe['customers'] == []
    assert fake_stripe['intents'] == []


def test_subscription_needs_email(client, make_user, auth_headers, fake_stripe):
    user = make_user(email=None)

    response = client.post('/api/get-or-create-subscription', headers=auth_headers(user))

    assert response.status_code == 400
    assert response.get_json()['message'] == 'No user email on file'


def test_payment_succeeded_webhook_activates_and_records_revenue(client, make_user, auth_headers):
    user = make_user(stripe_customer_id='cus_test_1')
    admin = make_user(role=UserRole.admin)

    first = _post_event(client, _payment_event(user))
    replay = _post_event(client, _payment_event(user))

    assert first.status_code == 200
    assert first.get_json() == {'received': True}
    assert replay.status_code == 200

    user = db.session.get(User, user.id)
    assert user.subscription_status == SubscriptionStatus.active
    assert user.role == UserRole.participant
    assert Payment.query.count() == 1

    stats = client.get('/api/admin/stats', headers=auth_headers(admin)).get_json()
    assert stats['revenue'] == pytest.approx(4.99)
    assert stats['trial_conversions'] == 1


def test_payment_failed_webhook_records_failure_only(client, make_user):
    user = make_user()

    response = _post_event(
        client,
        _payment_event(user, 'payment_intent.payment_failed', last_payment_error={'message': 'Card declined'}),
    )

    assert response.status_code == 200
    payment = Payment.query.one()
    assert payment.status.value == 'failed'
    assert payment.error_message == 'Card declined'
    assert db.session.get(User, user.id).subscription_status == SubscriptionStatus.inactive


def test_subscription_deleted_webhook_cancels(client, make_user):
    user = make_user(stripe_customer_id='cus_gone', subscription_status=SubscriptionStatus.active)

    response = _post_event(
        client,
        {'type': 'customer.subscription.deleted', 'data': {'object': {'id': 'sub_1', 'customer': 'cus_gone'}}},
    )

    assert response.status_code == 200
    assert db.session.get(User, user.id).subscription_status == SubscriptionStatus.canceled


def test_unknown_webhook_event_is_acknowledged(client):
    response = _post_event(client, {'type': 'charge.refunded', 'data': {'object': {'id': 'ch_1'}}})

    assert response.status_code == 200


def test_webhook_rejects_garbage_body(client):
    response = client.post('/api/webhook', data='not json', content_type='application/json')

    assert response.status_code == 400
    assert response.get_json()['message'] == 'Invalid payload'


def test_webhook_with_secret_rejects_bad_signature(app, client, make_user):
    app.config['STRIPE_WEBHOOK_SECRET'] = WEBHOOK_SECRET
    user = make_user()

    response = client.post(
        '/api/webhook',
        data=json.dumps(_payment_event(user)),
        content_type='application/json',
        headers={'Stripe-Signature': 't=1,v1=bogus'},
    )

    assert response.status_code == 400
    assert response.get_json() == {'message': 'Invalid signature'}
    assert db.session.get(User, user.id).subscription_status == SubscriptionStatus.inactive


def test_signed_payment_succeeded_webhook_activates_user(app, client, make_user):
    app.config['STRIPE_WEBHOOK_SECRET'] = WEBHOOK_SECRET
    user = make_user()
    payload = json.dumps(_payment_event(user, intent_id='pi_signed_1'))

    response = client.post(
        '/api/webhook',
        data=payload,
        content_type='application/json',
        headers={'Stripe-Signature': _signature_header(payload)},
    )

    assert response.status_code == 200
    assert response.get_json() == {'received': True}
    user = db.session.get(User, user.id)
    assert user.subscription_status == SubscriptionStatus.active
    assert user.role == UserRole.participant
    payment = Payment.query.one()
    assert payment.payment_intent_id == 'pi_signed_1'
    assert float(payment.amount) == pytest.approx(4.99)


def test_signed_payment_failed_webhook_records_error(app, client, make_user):
    app.config['STRIPE_WEBHOOK_SECRET'] = WEBHOOK_SECRET
    user = make_user()
    payload = json.dumps(_payment_event(
        user,
        'payment_intent.payment_failed',
        intent_id='pi_signed_2',
        last_payment_error={'message': 'Insufficient funds'},
    ))

    response = client.post(
        '/api/webhook',
        data=payload,
        content_type='application/json',
        headers={'Stripe-Signature': _signature_header(payload)},
    )

    assert response.status_code == 200
    assert Payment.query.one().error_message == 'Insufficient funds'
    assert db.session.get(User, user.id).subscription_status == SubscriptionStatus.inactive


def test_webhook_without_data_object_is_rejected(client):
    response = _post_event(client, {'type': 'payment_intent.succeeded'})

    assert response.status_code == 400
    assert response.get_json() == {'message': 'Invalid payload'}
