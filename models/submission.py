from pydantic import BaseModel, Field
from typing import List, Optional, Literal, Union
import re
from models.price import parse_grams

SubmissionAction = Literal["buy", "sell", "claim-policy", "invest", "quote"]

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class Submission(BaseModel):
    name: str = ""
    email: str = ""
    sku: str = ""
    description: Optional[str] = None
    metal: str = "Gold"
    grams: float = 0
    imagePath: Optional[str] = None


class SkuDataResponse(BaseModel):
    success: bool
    verified: Optional[bool] = None
    requiresVerification: Optional[bool] = None
    email: Optional[str] = None
    submission: Optional[Submission] = None
    message: Optional[str] = None


class SkuSuggestionsResponse(BaseModel):
    success: bool
    suggestions: List[str] = []


class OtpResponse(BaseModel):
    success: bool
    message: str = ""
    submission: Optional[Submission] = None


class OtpRequest(BaseModel):
    email: str
    sku: str
    otp: Optional[str] = None


class SubmissionForm(BaseModel):
    """The transaction-request form of the home page."""

    name: str = ""
    email: str = ""
    sku: str = ""
    description: str = ""
    metal: str = "Gold"
    grams: str = ""
    calculatedPrice: str = "$0.00"

    def validate_fields(self) -> Optional[str]:
        """Return the corrective message of the first failing field, if any."""
        if not self.name.strip():
            return "Please enter your name"
        if not self.email.strip() or not EMAIL_PATTERN.match(self.email):
            return "Please enter a valid email address"
        if not self.grams or parse_grams(self.grams) <= 0:
            return "Please enter a valid weight"
        return None

    @classmethod
    def from_submission(cls, submission: Submission) -> "SubmissionForm":
        grams = submission.grams
        return cls(
            name=submission.name or "",
            email=submission.email or "",
            sku=submission.sku or "",
            description=submission.description or "",
            metal=submission.metal or "Gold",
            grams=(f"{grams:g}" if grams else ""),
            calculatedPrice="$0.00",
        )


class FormSubmissionResponse(BaseModel):
    success: bool
    message: str = ""
    id: Optional[Union[int, str]] = None


class SellTransactionResponse(BaseModel):
    success: bool
    message: str = ""
    orderNumber: Optional[str] = None
    receiptUrl: Optional[str] = None


class SkuLookupView(BaseModel):
    """What the home page does after a SKU is picked."""

    outcome: Literal["otp_required", "autofill", "new_sku"]
    message: Optional[str] = None
    sku: str
    maskedEmail: Optional[str] = None
    form: Optional[SubmissionForm] = None
    imagePreview: Optional[str] = None


class SubmitView(BaseModel):
    success: bool
    redirect: Optional[str] = None
    referenceNumber: Optional[str] = None
    showThankYouModal: bool = False
    message: Optional[str] = None
    form: Optional[SubmissionForm] = None


def mask_email(email: str) -> str:
    if not email or "@" not in email:
        return email
    name, domain = email.split("@", 1)
    if len(name) > 3:
        visible = min(2, len(name) - 1)
        name = name[:visible] + "*" * (len(name) - visible - 1) + name[-1]
    return name + "@" + domain


class SkuSuggestionsView(BaseModel):
    suggestions: List[str] = []
    show: bool = False


class OtpView(BaseModel):
    success: bool
    message: str
