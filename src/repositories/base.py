"""Base repository with shared Notion HTTP and AWS client configuration."""

from typing import Any

import httpx

from src.config import settings
from src.exceptions import ConfigurationError, RecordStoreError
from src.logging.config import get_logger

logger = get_logger(__name__)


def get_aws_config() -> dict[str, Any]:
    """
    Build aioboto3 client configuration based on environment.

    For AWS Lambda with IAM roles, returns minimal config (region only).
    For LocalStack, includes endpoint_url and explicit credentials.

    Returns:
        Dictionary of boto3 client parameters
    """
    config: dict[str, Any] = {"region_name": settings.aws_region}

    if settings.s3_endpoint_url:
        config["endpoint_url"] = settings.s3_endpoint_url
        logger.debug(f"S3 config: Using endpoint_url={settings.s3_endpoint_url}")

    # Lambda exposes temporary credentials as three variables; all three
    # must be passed together or the session token is ignored
    if settings.aws_access_key_id:
        config["aws_access_key_id"] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        config["aws_secret_access_key"] = settings.aws_secret_access_key
    if settings.aws_session_token:
        config["aws_session_token"] = settings.aws_session_token

    if "aws_access_key_id" not in config:
        logger.debug("S3 config: Using default credential chain")

    return config


class BaseRepository:
    """
    Base repository providing authenticated calls to the Notion API.

    Every call opens a short-lived httpx.AsyncClient with a bounded
    timeout so one hung request cannot stall a poll cycle.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize repository.

        Args:
            api_key: Notion integration token (defaults to settings)
            base_url: Notion API origin (defaults to settings)
            timeout: Per-request timeout in seconds (defaults to settings)
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key or settings.notion_api_key
        self.base_url = (base_url or settings.notion_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.transport = transport

    def headers(
        self, version: str | None = None, content_type: str = "application/json"
    ) -> dict[str, str]:
        """
        Build the headers Notion requires on every request.

        Raises:
            ConfigurationError: If no API key is configured
        """
        if not self.api_key:
            raise ConfigurationError(message="Notion API key missing")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": version or settings.notion_version,
            "Content-Type": content_type,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        content: bytes | str | None = None,
        params: dict[str, str] | None = None,
        version: str | None = None,
        content_type: str = "application/json",
    ) -> httpx.Response:
        """
        Send one request to Notion and return the raw response.

        Non-2xx responses are returned, not raised.

        Raises:
            ConfigurationError: If no API key is configured
            RecordStoreError: On transport failure or timeout
        """
        headers = self.headers(version=version, content_type=content_type)
        try:
            async with self._client() as client:
                return await client.request(
                    method,
                    path,
                    json=json,
                    content=content,
                    params=params,
                    headers=headers,
                )
        except httpx.HTTPError as exc:
            logger.error(
                f"Notion request failed: {method} {path}: {exc}",
                extra={"context": {"method": method, "path": path}},
            )
            raise RecordStoreError(
                message=f"Notion request failed: {type(exc).__name__}",
                details={"path": path},
            ) from exc

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """
        Send a JSON request and return the decoded JSON body.

        Raises:
            RecordStoreError: On transport failure, any non-2xx response,
                or a body that is not a JSON object
        """
        response = await self.request(method, path, json=json, params=params)
        if response.is_error:
            logger.error(
                f"Notion API error: {response.status_code} on {method} {path}",
                extra={
                    "context": {
                        "status_code": response.status_code,
                        "body": response.text[:500],
                    }
                },
            )
            raise RecordStoreError(
                message=f"Notion API error: {response.status_code}",
                upstream_status=response.status_code,
                details={"path": path},
            )
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            logger.error(
                f"Notion returned a non-object body on {method} {path}",
                extra={
                    "context": {
                        "status_code": response.status_code,
                        "body": response.text[:500],
                    }
                },
            )
            raise RecordStoreError(
                message="Notion returned an invalid response",
                upstream_status=response.status_code,
                details={"path": path},
            )
        return data
