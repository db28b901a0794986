from typing import Any, Dict, Optional, Type, TypeVar
from threading import Lock
import logging
import httpx
from pydantic import BaseModel, ValidationError
from models.errors import BusinessError, TransportError
from utils.settings import get_settings

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class BackendConnectionManager:
    """Connection settings for the remote backend API.

    A client is opened per call so that requests never outlive the event loop
    that issued them.
    """

    _instance: Optional["BackendConnectionManager"] = None
    _lock = Lock()
    base_url: str = ""
    timeout: float = 15.0
    transport: Optional[httpx.AsyncBaseTransport] = None

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    settings = get_settings()
                    cls._instance = super().__new__(cls)
                    cls._instance.base_url = settings.api_base_url
                    cls._instance.timeout = settings.backend_timeout
                    cls._instance.transport = None
        return cls._instance

    @classmethod
    def reset(cls):
        with cls._lock:
            cls._instance = None

    async def request(
        self,
        method: str,
        endpoint: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Any = None,
        token: Optional[str] = None,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        headers = {}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.info("Making API request to: %s %s", method, url)
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                response = await client.request(
                    method, url, json=json, params=params, data=data, files=files, headers=headers
                )
        except httpx.HTTPError as e:
            logger.error("API request failed for %s: %s", endpoint, e)
            raise TransportError()

        logger.info("Response status: %s", response.status_code)
        if response.is_error:
            message = error_message(response)
            logger.error("HTTP error! status: %s, body: %s", response.status_code, response.text[:500])
            status_code = response.status_code if response.status_code < 500 else 502
            raise BusinessError(message, status_code=status_code)

        try:
            return response.json()
        except ValueError:
            logger.error("Non JSON response from %s", endpoint)
            raise BusinessError("Unexpected response from server", status_code=502)


def error_message(response: httpx.Response) -> str:
    """The backend's own message when it sent one, the status otherwise."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get("message"):
                return value["message"]
    return f"Request failed with status {response.status_code}"


def parse_response(model: Type[ModelT], data: Any) -> ModelT:
    """Validate a 2xx body; a body of the wrong shape is a business error, not a crash."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        body = data if isinstance(data, dict) else {}
        message = body.get("message") or body.get("error")
        if isinstance(message, dict):
            message = message.get("message")
        logger.error("Unexpected %s body: %s", model.__name__, e.errors(include_url=False))
        if not isinstance(message, str) or not message:
            message = "Unexpected response from server"
        raise BusinessError(message)
