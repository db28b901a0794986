from typing import Literal, Optional
from pydantic import BaseModel

ErrorKind = Literal["transport", "business", "payment", "step_up", "state"]

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and try again."


class FrontError(Exception):
    """Base of every error shown to the user. None of them is fatal to a page."""

    kind: ErrorKind = "business"
    status_code: int = 400

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {"success": False, "kind": self.kind, "message": self.message}


class TransportError(FrontError):
    """The backend could not be reached."""

    kind = "transport"
    status_code = 502

    def __init__(self, message: str = NETWORK_ERROR_MESSAGE):
        super().__init__(message)


class BusinessError(FrontError):
    """The backend answered with an error; its message is shown verbatim."""

    kind = "business"


class PaymentValidationError(FrontError):
    """Card declined or malformed payment input, shown next to the widget."""

    kind = "payment"
    status_code = 402


class StepUpFailedError(PaymentValidationError):
    kind = "step_up"


class WorkflowStateError(FrontError):
    kind = "state"
    status_code = 409


ERROR_TITLES = {
    404: "Page Not Found",
    403: "Access Forbidden",
    401: "Unauthorized Access",
    500: "Internal Server Error",
}

ERROR_DESCRIPTIONS = {
    404: "The page you are looking for might have been removed, had its name changed, or is temporarily unavailable.",
    403: "You do not have permission to access this resource. Please contact support if you believe this is an error.",
    401: "You need to be authenticated to access this resource. Please log in and try again.",
    500: "Something went wrong on our end. We are working to fix this issue. Please try again later.",
}


class ErrorPageView(BaseModel):
    status: int
    title: str
    message: str
    description: str
    severity: Literal["danger", "warning", "info"]

    @classmethod
    def build(cls, status: int, message: Optional[str] = None) -> "ErrorPageView":
        if status >= 500:
            severity = "danger"
        elif status >= 400:
            severity = "warning"
        else:
            severity = "info"
        return cls(
            status=status,
            title=ERROR_TITLES.get(status, "Error Occurred"),
            message=message or "Something went wrong!",
            description=ERROR_DESCRIPTIONS.get(
                status, "An unexpected error occurred. Please try again or contact support if the problem persists."
            ),
            severity=severity,
        )
