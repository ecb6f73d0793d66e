"""Notion pass-through route used by the browser form."""

from fastapi import APIRouter, Request
from fastapi.responses import Response

from src.services.proxy_service import ProxyService

router = APIRouter(tags=["Proxy"])


@router.api_route("/notion", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def proxy_to_notion(request: Request) -> Response:
    """
    Forward a request to the Notion API under ?path=/v1/...

    Notion's status code and body are returned unchanged. A page created
    without a parent is filed under the configured database.
    """
    body = await request.body()
    upstream = await ProxyService().forward(
        request.method,
        dict(request.query_params),
        body,
        request.headers.get("content-type"),
    )
    return Response(
        content=upstream.body,
        status_code=upstream.status_code,
        media_type=upstream.content_type,
    )
