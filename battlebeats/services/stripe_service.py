import json
import logging

import stripe
from flask import current_app

from battlebeats.utils.exceptions import PaymentProviderError, ValidationError

logger = logging.getLogger(__name__)


class StripeService:
    def __init__(self, api_key=None):
        self.api_key = api_key or current_app.config.get('STRIPE_SECRET_KEY')
        if not self.api_key:
            raise PaymentProviderError('Stripe is not configured')
        stripe.api_key = self.api_key
        self.price_cents = current_app.config['SUBSCRIPTION_PRICE_CENTS']
        self.currency = current_app.config['SUBSCRIPTION_CURRENCY']

    def create_customer(self, email, name=None):
        try:
            return stripe.Customer.create(email=email, name=name)
        except stripe.StripeError as e:
            logger.error(f"Failed to create Stripe customer for {email}: {str(e)}")
            raise PaymentProviderError('Could not create payment customer')

    def create_subscription_intent(self, customer_id, user_id):
        """Create the payment intent that pays for one participant subscription period"""
        try:
            return stripe.PaymentIntent.create(
                amount=self.price_cents,
                currency=self.currency,
                customer=customer_id,
                setup_future_usage='off_session',
                metadata={
                    'subscription_type': 'participant',
                    'user_id': str(user_id),
                },
            )
        except stripe.StripeError as e:
            logger.error(f"Failed to create payment intent for user {user_id}: {str(e)}")
            raise PaymentProviderError('Could not create payment')

    def retrieve_payment_intent(self, payment_intent_id):
        try:
            return stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            logger.error(f"Failed to retrieve payment intent {payment_intent_id}: {str(e)}")
            raise PaymentProviderError('Could not retrieve payment')


def stripe_field(stripe_object, key, default=None):
    """Read `key` from a Stripe object or a plain dict; Stripe objects have no `.get`"""
    if stripe_object is None:
        return default
    try:
        value = stripe_object[key]
    except (KeyError, TypeError):
        return default
    return default if value is None else value


def parse_webhook_event(payload, sig_header, webhook_secret):
    """
    Turn a raw webhook body into an event.

    The signature is verified when a webhook secret is configured; without one
    the body is trusted as-is (local development only). Either way the event
    must carry a type and a data object.
    """
    if webhook_secret:
        try:
            event = stripe.Webhook.construct_event(payload, sig_header, webhook_secret)
        except ValueError:
            raise ValidationError('Invalid payload')
        except stripe.SignatureVerificationError:
            logger.warning("Rejected webhook with an invalid signature")
            raise ValidationError('Invalid signature')
    else:
        try:
            event = json.loads(payload)
        except (TypeError, ValueError):
            raise ValidationError('Invalid payload')

    if not stripe_field(event, 'type') or stripe_field(stripe_field(event, 'data'), 'object') is None:
        raise ValidationError('Invalid payload')
    return event
