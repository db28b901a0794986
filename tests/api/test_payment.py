import json
from unittest.mock import patch
import httpx
from fastapi.testclient import TestClient
from api import app
from managers.workflow_manager import WorkflowManager

client = TestClient(app)

ORDER = {
    "_id": "o1",
    "orderNumber": "ORD-1",
    "name": "Ann Lee",
    "email": "ann@example.com",
    "metal": "Gold",
    "grams": 10,
    "calculatedPrice": "Price: $652.50",
    "paymentStatus": "pending",
    "createdAt": "2025-01-05T10:00:00Z",
}

STEP_UP = {"requires_action": True, "payment_intent_client_secret": "pi_9_secret_abc"}


def answers(*bodies):
    remaining = iter(bodies)
    return lambda request: httpx.Response(200, json=next(remaining))


def open_payment_page(backend):
    backend.add("GET", "/orders/payment/ORD-1", {"success": True, "order": ORDER})
    page = client.get("/payment/ORD-1").json()
    return page["workflow"]["id"], page


def mount(workflow_id):
    client.post(f"/workflows/{workflow_id}/container", json={"container": "card-element"})
    return client.post(f"/workflows/{workflow_id}/ready").json()


def test_payment_page_opens_a_workflow(backend):
    workflow_id, page = open_payment_page(backend)

    assert page["order"]["orderNumber"] == "ORD-1"
    assert page["workflow"]["state"] == "widget_mounting"
    assert page["workflow"]["correlationId"] == "ORD-1"
    assert page["workflow"]["submitEnabled"] is False
    assert page["workflow"]["widget"]["publishableKey"] == "pk_test_front"
    assert client.get(f"/workflows/{workflow_id}").json()["id"] == workflow_id


def test_paid_order_redirects_to_already_paid(backend):
    backend.add("GET", "/orders/payment/ORD-1", {"success": True, "already_paid": True})
    response = client.get("/payment/ORD-1", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/payment-already-paid/ORD-1"
    assert WorkflowManager().workflows == {}


def test_payment_page_failure(backend):
    backend.add("GET", "/orders/payment/ORD-1", {"success": False, "message": "Order cancelled"})
    response = client.get("/payment/ORD-1")

    assert response.status_code == 400
    assert response.json()["message"] == "Order cancelled"
    assert WorkflowManager().workflows == {}


def test_container_then_ready_enables_submit(backend):
    workflow_id, _ = open_payment_page(backend)

    mounted = client.post(f"/workflows/{workflow_id}/container", json={"container": "card-element"}).json()
    assert mounted["state"] == "widget_mounting"
    assert mounted["widget"]["container"] == "card-element"

    ready = client.post(f"/workflows/{workflow_id}/ready").json()
    assert ready["state"] == "widget_ready"
    assert ready["submitEnabled"] is True


def test_submit_before_ready_is_rejected(backend):
    workflow_id, _ = open_payment_page(backend)

    response = client.post(f"/workflows/{workflow_id}/submit", json={"payment_method_id": "pm_card_visa"})
    assert response.status_code == 409
    body = response.json()
    assert body["kind"] == "state"
    assert body["workflow"]["state"] == "widget_mounting"
    assert backend.called("POST", "/orders/process-payment") == []


def test_successful_payment_routes_to_success_page(backend):
    workflow_id, _ = open_payment_page(backend)
    mount(workflow_id)
    backend.add("POST", "/orders/process-payment", {"success": True})

    snapshot = client.post(
        f"/workflows/{workflow_id}/submit",
        json={"payment_method_id": "pm_card_visa", "cardholder_name": "Ann Lee"},
    ).json()

    assert snapshot["state"] == "succeeded"
    assert snapshot["redirect"] == "/payment-success/ORD-1"
    assert client.get(f"/workflows/{workflow_id}").status_code == 404


def test_declined_card_keeps_the_form(backend):
    workflow_id, _ = open_payment_page(backend)
    mount(workflow_id)
    backend.add("POST", "/orders/process-payment", {"error": {"message": "Your card has insufficient funds."}})

    response = client.post(f"/workflows/{workflow_id}/submit", json={"payment_method_id": "pm_card_visa"})
    assert response.status_code == 402
    assert response.json()["message"] == "Your card has insufficient funds."
    assert response.json()["workflow"]["state"] == "declined"
    assert response.json()["workflow"]["submitEnabled"] is True


@patch("managers.payment_manager.stripe.PaymentIntent.retrieve")
def test_step_up_return_completes_the_same_order(retrieve, backend):
    retrieve.return_value = {"id": "pi_9", "status": "succeeded"}
    workflow_id, _ = open_payment_page(backend)
    mount(workflow_id)
    backend.add_handler("POST", "/orders/process-payment", answers(STEP_UP, {"success": True}))

    snapshot = client.post(f"/workflows/{workflow_id}/submit", json={"payment_method_id": "pm_3ds"}).json()
    assert snapshot["state"] == "step_up_required"

    response = client.get(
        "/payment-complete",
        params={
            "order": "ORD-1",
            "workflow": workflow_id,
            "payment_intent": "pi_9",
            "payment_intent_client_secret": "pi_9_secret_abc",
        },
        follow_redirects=False,
    )
    assert response.status_code == 302
    assert response.headers["location"] == "/payment-success/ORD-1"
    second = json.loads(backend.called("POST", "/orders/process-payment")[1].content)
    assert second["payment_intent_id"] == "pi_9"
    assert second["order_number"] == "ORD-1"


@patch("managers.payment_manager.stripe.PaymentIntent.retrieve")
def test_in_page_step_up_return(retrieve, backend):
    retrieve.return_value = {"id": "pi_9", "status": "requires_payment_method", "last_payment_error": None}
    workflow_id, _ = open_payment_page(backend)
    mount(workflow_id)
    backend.add("POST", "/orders/process-payment", STEP_UP)
    client.post(f"/workflows/{workflow_id}/submit", json={"payment_method_id": "pm_3ds"})

    response = client.get(f"/workflows/{workflow_id}/return", params={"payment_intent": "pi_9"})
    assert response.status_code == 402
    assert response.json()["kind"] == "step_up"
    assert response.json()["workflow"]["state"] == "declined"
    assert len(backend.called("POST", "/orders/process-payment")) == 1


@patch("managers.payment_manager.stripe.PaymentIntent.retrieve")
def test_step_up_return_without_open_page(retrieve, backend):
    retrieve.return_value = {"id": "pi_9", "status": "succeeded"}
    backend.add("POST", "/orders/process-payment", {"success": True})

    response = client.get(
        "/payment-complete",
        params={"order": "ORD-1", "payment_intent": "pi_9", "payment_intent_client_secret": "pi_9_secret_abc"},
        follow_redirects=False,
    )
    assert response.status_code == 302
    assert response.headers["location"] == "/payment-success/ORD-1"
    assert json.loads(backend.calls[0].content) == {"payment_intent_id": "pi_9", "order_number": "ORD-1"}


def test_step_up_return_with_nothing_to_resume(backend):
    response = client.get("/payment-complete", params={"order": "ORD-1"})
    assert response.status_code == 400
    assert backend.calls == []


def test_success_page(backend):
    backend.add("GET", "/orders/payment-success/ORD-1", {"success": True, "order": {**ORDER, "paymentStatus": "paid"}})
    view = client.get("/payment-success/ORD-1").json()
    assert view["outcome"] == "success"
    assert view["orderDate"] == "January 5, 2025"


def test_success_page_for_an_order_paid_earlier(backend):
    backend.add("GET", "/orders/payment-success/ORD-1", {"success": True, "already_paid": True, "order": ORDER})
    assert client.get("/payment-success/ORD-1").json()["outcome"] == "already_processed"


def test_success_page_never_guesses(backend):
    backend.add("GET", "/orders/payment-success/ORD-1", {"success": False})
    response = client.get("/payment-success/ORD-1")
    assert response.status_code == 404
    assert response.json()["message"] == "Failed to load order data"


def test_already_paid_page(backend):
    backend.add("GET", "/orders/payment-already-paid/ORD-1", {"success": True, "order": ORDER})
    assert client.get("/payment-already-paid/ORD-1").json()["outcome"] == "already_paid"


def test_cancel_page(backend):
    backend.add("GET", "/orders/payment/cancel", {"success": True, "orderNumber": "ORD-1"})
    assert client.get("/payment-cancel", params={"order": "ORD-1"}).json() == {"success": True, "orderNumber": "ORD-1"}
    assert backend.calls[0].url.params["order"] == "ORD-1"


def test_cancel_page_keeps_the_order_number_when_backend_fails(backend):
    backend.fail("GET", "/orders/payment/cancel")
    assert client.get("/payment-cancel", params={"order": "ORD-1"}).json() == {"success": False, "orderNumber": "ORD-1"}
