from flask import Blueprint, jsonify
from http import HTTPStatus
from battlebeats.middleware.auth import token_required
from battlebeats.routes.route_utils import handle_errors
from battlebeats.services.storage import storage
from battlebeats.services.stripe_service import StripeService, stripe_field

payments_bp = Blueprint('payments', __name__, url_prefix='/api')


def _intent_response(payment_intent):
    return jsonify({
        'subscription_id': stripe_field(payment_intent, 'id'),
        'client_secret': stripe_field(payment_intent, 'client_secret'),
        'status': stripe_field(payment_intent, 'status'),
    }), HTTPStatus.OK


@payments_bp.route('/get-or-create-subscription', methods=['POST'])
@token_required
@handle_errors
def get_or_create_subscription(current_user):
    """
    Return the client secret the frontend needs to collect the subscription payment.

    The user stays on their current subscription status; it only becomes
    active once the payment provider reports the payment as succeeded.
    """
    stripe_service = StripeService()

    if current_user.stripe_subscription_id:
        payment_intent = stripe_service.retrieve_payment_intent(current_user.stripe_subscription_id)
        return _intent_response(payment_intent)

    if not current_user.email:
        return jsonify({'message': 'No user email on file'}), HTTPStatus.BAD_REQUEST

    customer_id = current_user.stripe_customer_id
    if not customer_id:
        customer = stripe_service.create_customer(current_user.email, current_user.display_name)
        customer_id = stripe_field(customer, 'id')

    payment_intent = stripe_service.create_subscription_intent(customer_id, current_user.id)
    storage.update_user_stripe_info(current_user.id, customer_id, stripe_field(payment_intent, 'id'))

    return _intent_response(payment_intent)
