"""Pass-through proxy from the browser form to the Notion /v1 API."""

import json
from typing import Any

from src.config import settings
from src.exceptions import BadRequestError, ConfigurationError
from src.logging.config import get_logger
from src.repositories.record_repository import RecordRepository, UpstreamResponse

logger = get_logger(__name__)

DEFAULT_PATH = "/v1/pages"
PAGE_CREATE_PATH = "/v1/pages"
# Query parameters consumed by the proxy itself
RESERVED_PARAMS = ("path", "version")


def normalize_path(path: str | None) -> str:
    """
    Resolve the target Notion path.

    Raises:
        BadRequestError: If the path is outside /v1/
    """
    path = path or DEFAULT_PATH
    if not path.startswith("/"):
        path = f"/{path}"
    if not path.startswith("/v1/"):
        raise BadRequestError(
            message="Only Notion /v1 endpoints are allowed",
            details={"path": path},
        )
    return path


def inject_parent(payload: Any, database_id: str | None) -> dict[str, Any]:
    """Default a page's parent to the configured database."""
    if not isinstance(payload, dict):
        payload = {}
    parent = payload.get("parent")
    if isinstance(parent, dict) and (parent.get("database_id") or parent.get("page_id")):
        return payload
    payload["parent"] = {
        **(parent if isinstance(parent, dict) else {}),
        "database_id": database_id,
    }
    return payload


class ProxyService:
    """Forwards form requests to Notion with the server-side token."""

    def __init__(self, repository: RecordRepository | None = None) -> None:
        self.repository = repository or RecordRepository()

    async def forward(
        self,
        method: str,
        query: dict[str, str],
        body: bytes,
        content_type: str | None = None,
    ) -> UpstreamResponse:
        """
        Forward one request and return Notion's response verbatim.

        Args:
            method: HTTP method of the incoming request
            query: Incoming query parameters (path, version and the rest)
            body: Raw request body
            content_type: Incoming Content-Type header

        Returns:
            UpstreamResponse with Notion's status and body

        Raises:
            ConfigurationError: If no Notion API key is configured
            BadRequestError: If the path is not a /v1 endpoint
            RecordStoreError: If Notion cannot be reached
        """
        if not self.repository.api_key:
            raise ConfigurationError(message="Notion API key missing")

        path = normalize_path(query.get("path"))
        method = method.upper()
        content_type = content_type or "application/json"
        params = {k: v for k, v in query.items() if k not in RESERVED_PARAMS}

        if (
            method == "POST"
            and path == PAGE_CREATE_PATH
            and "application/json" in content_type
        ):
            body = self._with_parent(body)

        logger.info(
            f"Proxying {method} {path}",
            extra={"context": {"method": method, "path": path, "params": params}},
        )
        return await self.repository.forward(
            method,
            path,
            params=params,
            body=body,
            content_type=content_type,
            version=query.get("version") or settings.notion_version,
        )

    def _with_parent(self, body: bytes) -> bytes:
        try:
            payload = json.loads(body) if body else {}
        except ValueError as e:
            raise BadRequestError(message="Request body is not valid JSON") from e
        payload = inject_parent(payload, self.repository.database_id)
        return json.dumps(payload).encode("utf-8")
