from flask import Blueprint, request, jsonify, current_app
from http import HTTPStatus
import logging
from decimal import Decimal
from battlebeats.models.payment import PaymentStatus
from battlebeats.routes.route_utils import handle_errors
from battlebeats.services.storage import storage
from battlebeats.services.stripe_service import parse_webhook_event, stripe_field

logger = logging.getLogger(__name__)

webhook_bp = Blueprint('webhooks', __name__, url_prefix='/api')


@webhook_bp.route('/webhook', methods=['POST'])
@handle_errors
def stripe_webhook():
    """Handle Stripe webhook events"""
    event = parse_webhook_event(
        request.get_data(),
        request.headers.get('Stripe-Signature'),
        current_app.config.get('STRIPE_WEBHOOK_SECRET'),
    )

    event_type = stripe_field(event, 'type')
    event_object = stripe_field(stripe_field(event, 'data'), 'object')
    logger.info(f"Received webhook event {event_type}")

    if event_type == 'payment_intent.succeeded':
        handle_successful_payment(event_object)
    elif event_type == 'payment_intent.payment_failed':
        handle_failed_payment(event_object)
    elif event_type in ('invoice.payment_succeeded', 'checkout.session.completed'):
        handle_customer_paid(event_object)
    elif event_type == 'customer.subscription.deleted':
        handle_subscription_canceled(event_object)

    return jsonify({'received': True}), HTTPStatus.OK


def _to_major_units(amount_cents):
    # Stripe reports amounts in the smallest currency unit
    return Decimal(amount_cents or 0) / 100


def _find_payer(payment_object):
    """The user a payment belongs to: metadata first, then the Stripe customer"""
    user_id = stripe_field(stripe_field(payment_object, 'metadata'), 'user_id')
    user = storage.get_user(user_id) if user_id else None
    if user is None:
        user = storage.get_user_by_stripe_customer(stripe_field(payment_object, 'customer'))
    return user


def handle_successful_payment(payment_intent):
    intent_id = stripe_field(payment_intent, 'id')
    user = _find_payer(payment_intent)
    if not user:
        logger.warning(f"No user found for payment intent {intent_id}")
        return

    _, created = storage.record_payment(
        user_id=user.id,
        payment_intent_id=intent_id,
        amount=_to_major_units(
            stripe_field(payment_intent, 'amount_received') or stripe_field(payment_intent, 'amount')
        ),
        currency=stripe_field(payment_intent, 'currency', 'usd'),
        status=PaymentStatus.completed,
    )
    if not created:
        logger.info(f"Payment {intent_id} already processed")
        return

    storage.activate_subscription(user)


def handle_failed_payment(payment_intent):
    intent_id = stripe_field(payment_intent, 'id')
    user = _find_payer(payment_intent)
    if not user:
        logger.warning(f"No user found for failed payment intent {intent_id}")
        return

    error = stripe_field(payment_intent, 'last_payment_error')
    storage.record_payment(
        user_id=user.id,
        payment_intent_id=intent_id,
        amount=_to_major_units(stripe_field(payment_intent, 'amount')),
        currency=stripe_field(payment_intent, 'currency', 'usd'),
        status=PaymentStatus.failed,
        error_message=stripe_field(error, 'message', 'Payment failed'),
    )


def handle_customer_paid(paid_object):
    customer_id = stripe_field(paid_object, 'customer')
    user = storage.get_user_by_stripe_customer(customer_id)
    if not user:
        logger.warning(f"No user found for Stripe customer {customer_id}")
        return
    storage.activate_subscription(user)


def handle_subscription_canceled(subscription):
    customer_id = stripe_field(subscription, 'customer')
    user = storage.get_user_by_stripe_customer(customer_id)
    if not user:
        logger.warning(f"No user found for Stripe customer {customer_id}")
        return
    storage.cancel_subscription(user)
