import pytest
from unittest.mock import patch
from managers.workflow_manager import WorkflowManager
from models.errors import WorkflowStateError
from models.payment import IntentResult
from services.payment_workflow import CheckoutPaymentWorkflow


def open_checkout(order_number="ORD-1"):
    return WorkflowManager().open(lambda workflow_id: CheckoutPaymentWorkflow(workflow_id, order_number))


def test_open_and_get():
    workflow = open_checkout()
    assert WorkflowManager().get(workflow.id) is workflow


def test_unknown_workflow_is_expired():
    with pytest.raises(WorkflowStateError) as excinfo:
        WorkflowManager().get("missing")
    assert excinfo.value.status_code == 404


def test_close_tears_down_the_workflow():
    workflow = open_checkout()
    WorkflowManager().close(workflow.id)

    assert workflow.closed
    with pytest.raises(WorkflowStateError):
        WorkflowManager().get(workflow.id)


def test_find_by_correlation_id():
    first = open_checkout("ORD-1")
    second = open_checkout("ORD-2")
    first.intent = IntentResult(correlation_id="ORD-1")
    second.intent = IntentResult(correlation_id="ORD-2")

    assert WorkflowManager().find("checkout", "ORD-2") is second
    assert WorkflowManager().find("subscription", "ORD-2") is None


def test_expired_workflows_are_evicted():
    manager = WorkflowManager()
    with patch("managers.workflow_manager.time.monotonic", return_value=1000.0):
        workflow = open_checkout()
    with patch("managers.workflow_manager.time.monotonic", return_value=1000.0 + manager.ttl + 1):
        with pytest.raises(WorkflowStateError):
            manager.get(workflow.id)
    assert workflow.closed
