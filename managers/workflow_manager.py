from typing import Callable, Dict, Optional, Tuple
from threading import Lock
import logging
import time
import uuid
from models.errors import WorkflowStateError
from services.payment_workflow import PaymentWorkflow
from utils.settings import get_settings

logger = logging.getLogger(__name__)


class WorkflowManager:
    """Open payment workflows, one per page that shows a payment form.

    A workflow is opened when the page loads and closed when the customer
    leaves it (success, reselection into a new page, expiry).
    """

    _instance: Optional["WorkflowManager"] = None
    _lock = Lock()
    workflows: Dict[str, Tuple[float, PaymentWorkflow]]
    ttl: int = 3600

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance.workflows = {}
                    cls._instance.ttl = get_settings().workflow_ttl_seconds
        return cls._instance

    @classmethod
    def reset(cls):
        with cls._lock:
            if cls._instance is not None:
                for _, workflow in cls._instance.workflows.values():
                    workflow.close()
            cls._instance = None

    def open(self, factory: Callable[[str], PaymentWorkflow]) -> PaymentWorkflow:
        workflow_id = str(uuid.uuid4())
        workflow = factory(workflow_id)
        with self._lock:
            self._evict_expired()
            self.workflows[workflow_id] = (time.monotonic(), workflow)
        logger.info("Opened %s workflow %s", workflow.kind, workflow_id)
        return workflow

    def get(self, workflow_id: str) -> PaymentWorkflow:
        with self._lock:
            self._evict_expired()
            entry = self.workflows.get(workflow_id)
            if entry is None:
                raise WorkflowStateError("This payment page has expired. Please reload the page.", status_code=404)
            self.workflows[workflow_id] = (time.monotonic(), entry[1])
            return entry[1]

    def find(self, kind: str, correlation_id: str) -> Optional[PaymentWorkflow]:
        """Latest open workflow of a kind that is paying for a given order or subscription."""
        with self._lock:
            matches = [
                (touched, workflow)
                for touched, workflow in self.workflows.values()
                if workflow.kind == kind and workflow.intent is not None and workflow.intent.correlation_id == correlation_id
            ]
        if not matches:
            return None
        return max(matches, key=lambda m: m[0])[1]

    def close(self, workflow_id: str):
        with self._lock:
            entry = self.workflows.pop(workflow_id, None)
        if entry is not None:
            entry[1].close()
            logger.info("Closed workflow %s", workflow_id)

    def _evict_expired(self):
        now = time.monotonic()
        expired = [wid for wid, (touched, _) in self.workflows.items() if now - touched > self.ttl]
        for wid in expired:
            _, workflow = self.workflows.pop(wid)
            workflow.close()
            logger.info("Evicted expired workflow %s", wid)
