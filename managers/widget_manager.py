from typing import Any, Callable, Dict, List, Optional
from typing import Protocol
import logging
from models.errors import WorkflowStateError
from utils.settings import get_settings, mask_secret

logger = logging.getLogger(__name__)

CARD_STYLE = {
    "base": {
        "fontSize": "16px",
        "color": "#495057",
        "fontFamily": "Arial, sans-serif",
        "::placeholder": {"color": "#aab7c4"},
    },
    "invalid": {"color": "#dc3545", "iconColor": "#dc3545"},
}

PAYMENT_APPEARANCE = {
    "theme": "stripe",
    "variables": {"colorPrimary": "#0d6efd", "borderRadius": "6px"},
}


class PaymentWidget(Protocol):
    """What a workflow needs from a processor UI element."""

    ready: bool
    destroyed: bool

    def mount(self, container: str) -> Dict[str, Any]: ...

    def on_ready(self, callback: Callable[[], None]) -> None: ...

    def destroy(self) -> None: ...


class StripeElementWidget:
    """Server side handle of a Stripe Element living in the browser.

    The browser builds the element from `options()` once the container exists
    and reports back when the element is interactive.
    """

    def __init__(self, publishable_key: str, client_secret: Optional[str] = None):
        self.publishable_key = publishable_key
        self.client_secret = client_secret
        self.element_type = "payment" if client_secret else "card"
        self.container: Optional[str] = None
        self.ready = False
        self.destroyed = False
        self._callbacks: List[Callable[[], None]] = []

    def options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "publishableKey": self.publishable_key,
            "elementType": self.element_type,
            "container": self.container,
        }
        if self.client_secret:
            options["clientSecret"] = self.client_secret
            options["appearance"] = PAYMENT_APPEARANCE
            options["layout"] = {"defaultCollapsed": False}
        else:
            options["style"] = CARD_STYLE
        return options

    def mount(self, container: str) -> Dict[str, Any]:
        if self.destroyed:
            raise WorkflowStateError("This payment form has been replaced. Please reload the page.")
        if not container:
            raise WorkflowStateError("Payment form container is missing.")
        self.container = container
        logger.info("Mounting %s element for %s into #%s", self.element_type, mask_secret(self.client_secret or ""), container)
        return self.options()

    def on_ready(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def mark_ready(self) -> bool:
        """Record the browser's ready event. Ignored once destroyed or before mount."""
        if self.destroyed or self.container is None or self.ready:
            return False
        self.ready = True
        for callback in list(self._callbacks):
            callback()
        return True

    def destroy(self) -> None:
        self.destroyed = True
        self.ready = False
        self._callbacks.clear()


def create_widget(client_secret: Optional[str] = None) -> StripeElementWidget:
    settings = get_settings()
    return StripeElementWidget(settings.stripe_publishable_key, client_secret)
