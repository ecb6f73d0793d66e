"""Form metadata read from the Notion database schema."""

from fastapi import APIRouter

from src.config import settings
from src.exceptions import ConfigurationError
from src.repositories.record_repository import RecordRepository
from src.schemas.notification import IssueTypesResponse

router = APIRouter(tags=["Metadata"])


@router.get(
    "/issue-types",
    response_model=IssueTypesResponse,
    response_model_by_alias=True,
    responses={404: {"description": "Issue Type property missing or not a select"}},
)
async def get_issue_types() -> IssueTypesResponse:
    """List the options of the database's "Issue Type" select property."""
    if not settings.notion_configured:
        raise ConfigurationError(message="Notion configuration missing")

    options = await RecordRepository().get_issue_types()
    return IssueTypesResponse(issue_types=options)
