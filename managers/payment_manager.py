from typing import Optional, Protocol
import logging
import stripe
from models.payment import ProcessorResult
from utils.settings import get_settings, mask_secret

logger = logging.getLogger(__name__)

STEP_UP_STATUSES = ("requires_action", "requires_source_action")
SUCCESS_STATUSES = ("succeeded", "processing", "requires_capture")
INVALID_SESSION_MESSAGE = "Your payment session is invalid. Please reload the page and try again."


def intent_id_from_secret(client_secret: str) -> str:
    """`pi_123_secret_abc` -> `pi_123`"""
    if not client_secret or "_secret_" not in client_secret:
        raise ValueError("Malformed client secret")
    return client_secret.split("_secret_", 1)[0]


class PaymentProcessor(Protocol):
    def confirm_payment(self, client_secret: str, payment_method_id: Optional[str], return_url: str) -> ProcessorResult: ...

    def handle_card_action(self, client_secret: str, payment_intent_id: Optional[str] = None) -> ProcessorResult: ...


class StripePaymentProcessor:
    """Confirms PaymentIntents with the publishable key and the intent's client secret,
    as the browser library does."""

    def __init__(self, publishable_key: Optional[str] = None):
        self.publishable_key = publishable_key or get_settings().stripe_publishable_key

    def confirm_payment(self, client_secret: str, payment_method_id: Optional[str], return_url: str) -> ProcessorResult:
        try:
            intent_id = intent_id_from_secret(client_secret)
        except ValueError:
            logger.error("Cannot confirm with malformed client secret %s", mask_secret(client_secret))
            return ProcessorResult(status="declined", message=INVALID_SESSION_MESSAGE)
        params = {"client_secret": client_secret, "return_url": return_url}
        if payment_method_id:
            params["payment_method"] = payment_method_id
        logger.info("Confirming payment intent %s", intent_id)
        try:
            intent = stripe.PaymentIntent.confirm(intent_id, api_key=self.publishable_key, **params)
        except stripe.StripeError as e:
            logger.error("Payment confirmation failed for %s: %s", intent_id, e)
            return ProcessorResult(status="declined", message=_stripe_message(e, "Payment failed"), payment_intent_id=intent_id)
        return _result_from_intent(intent, client_secret)

    def handle_card_action(self, client_secret: str, payment_intent_id: Optional[str] = None) -> ProcessorResult:
        """Check the intent after the customer went through the issuer's challenge."""
        try:
            intent_id = payment_intent_id or intent_id_from_secret(client_secret)
        except ValueError:
            return ProcessorResult(status="declined", message=INVALID_SESSION_MESSAGE)
        logger.info("Checking step-up result of %s (%s)", intent_id, mask_secret(client_secret))
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id, api_key=self.publishable_key, client_secret=client_secret)
        except stripe.StripeError as e:
            logger.error("Step-up check failed for %s: %s", intent_id, e)
            return ProcessorResult(status="declined", message=_stripe_message(e, "Authentication failed"), payment_intent_id=intent_id)

        status = intent.get("status")
        if status in SUCCESS_STATUSES or status == "requires_confirmation":
            return ProcessorResult(
                status="succeeded",
                payment_intent_id=intent.get("id"),
                client_secret=client_secret,
                intent_status=status,
            )
        error = intent.get("last_payment_error") or {}
        return ProcessorResult(
            status="declined",
            message=error.get("message") or "Authentication failed",
            payment_intent_id=intent.get("id"),
            client_secret=client_secret,
        )


def _result_from_intent(intent, client_secret: str) -> ProcessorResult:
    status = intent.get("status")
    intent_id = intent.get("id")
    if status in SUCCESS_STATUSES:
        return ProcessorResult(status="succeeded", payment_intent_id=intent_id, client_secret=client_secret, intent_status=status)
    if status in STEP_UP_STATUSES:
        next_action = intent.get("next_action") or {}
        redirect = (next_action.get("redirect_to_url") or {}).get("url")
        return ProcessorResult(
            status="requires_action",
            payment_intent_id=intent_id,
            client_secret=client_secret,
            redirect_url=redirect,
            intent_status=status,
        )
    error = intent.get("last_payment_error") or {}
    return ProcessorResult(
        status="declined",
        message=error.get("message") or "Payment failed",
        payment_intent_id=intent_id,
        client_secret=client_secret,
    )


def _stripe_message(error: stripe.StripeError, default: str) -> str:
    return getattr(error, "user_message", None) or str(error) or default
