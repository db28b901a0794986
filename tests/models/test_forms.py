from models.auth import status_badge_color
from models.claim import CreateClaimRequest, Claim, list_item
from models.errors import ErrorPageView
from models.order import CheckoutForm, format_order_date
from models.submission import SubmissionForm, mask_email
from models.subscription import Subscription, status_label


def test_submission_form_validation_messages():
    assert SubmissionForm(email="a@b.co", grams="1").validate_fields() == "Please enter your name"
    assert SubmissionForm(name="Ann", email="a@b", grams="1").validate_fields() == "Please enter a valid email address"
    assert SubmissionForm(name="Ann", email="a@b.co", grams="0").validate_fields() == "Please enter a valid weight"
    assert SubmissionForm(name="Ann", email="a@b.co", grams="2.5").validate_fields() is None


def test_mask_email():
    assert mask_email("johnsmith@example.com") == "jo******h@example.com"
    assert mask_email("bob@example.com") == "bob@example.com"
    assert mask_email("not-an-email") == "not-an-email"


def test_checkout_form_lists_missing_fields():
    form = CheckoutForm(
        submissionId=1,
        name="Ann",
        email="ann@example.com",
        phone="555",
        street="1 Main St",
        state="CA",
        zipCode="94000",
        country="US",
    )
    assert form.missing_fields() == ["city"]


def test_claim_request_validation():
    assert CreateClaimRequest(subscriptionId="sub_1", productDescription=" ").validate_fields() == (
        "Please describe the product and the issue."
    )
    assert CreateClaimRequest(subscriptionId="sub_1", productDescription="Scratched", claimType="fire").validate_fields()
    assert CreateClaimRequest(subscriptionId="sub_1", productDescription="Scratched", claimType="theft").validate_fields() is None


def test_claim_list_item_previews_three_images():
    claim = Claim(productDescription="Dent", claimType="damage", images=["1", "2", "3", "4", "5"])
    item = list_item(claim)
    assert item.typeLabel == "Damage"
    assert item.previewImages == ["1", "2", "3"]
    assert item.moreImages == 2


def test_subscription_status_labels_and_resume():
    subscription = Subscription(plan="monthly", stripeSubscriptionId="sub_1", status="incomplete_expired")
    assert subscription.can_resume
    assert status_label("incomplete_expired") == "Expired"
    assert status_label("past_due") == "Past Due"
    assert not Subscription(plan="yearly", stripeSubscriptionId="sub_2", status="active").can_resume


def test_status_badge_colors():
    assert status_badge_color("active") == "success"
    assert status_badge_color("paid") == "success"
    assert status_badge_color("pending") == "warning"
    assert status_badge_color("cancelled") == "danger"
    assert status_badge_color("failed") == "danger"
    assert status_badge_color("shipped") == "secondary"


def test_error_page_per_status():
    page = ErrorPageView.build(404)
    assert page.title == "Page Not Found"
    assert page.severity == "warning"
    assert ErrorPageView.build(503).title == "Error Occurred"
    assert ErrorPageView.build(503).severity == "danger"
    assert ErrorPageView.build(302).severity == "info"
    assert ErrorPageView.build(500).message == "Something went wrong!"


def test_order_dates_are_spelled_out():
    assert format_order_date("2025-01-05T10:00:00Z") == "January 5, 2025"
    assert format_order_date("soon") == "soon"
    assert format_order_date(None) is None
