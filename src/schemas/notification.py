"""Pydantic schemas for the notification trigger and metadata endpoints."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.record import IssueTypeOption


class PollResponse(BaseModel):
    """
    Summary returned to the scheduler after one poll cycle.

    Attributes:
        success: Always true; failures are reported as errors
        records_found: Candidate records returned by the query
        emails_sent: Emails dispatched successfully
        errors: Records whose email could not be sent
        skipped: Records skipped by a precondition
        timestamp: ISO 8601 completion time
        trigger: "scheduled" or "manual"
    """

    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        json_schema_extra={
            "example": {
                "success": True,
                "recordsFound": 3,
                "emailsSent": 2,
                "errors": 1,
                "skipped": 0,
                "durationMs": 412.5,
                "timestamp": "2025-11-11T12:00:00+00:00",
                "trigger": "scheduled",
            }
        },
    )

    success: bool = True
    records_found: int = Field(..., description="Candidate records found")
    emails_sent: int = Field(..., description="Emails sent")
    errors: int = Field(..., description="Records that failed")
    skipped: int = Field(0, description="Records skipped")
    duration_ms: float = Field(0.0, description="Cycle duration")
    timestamp: str = Field(..., description="ISO 8601 timestamp")
    trigger: str = Field(..., description="scheduled or manual")


class SmtpTestResponse(BaseModel):
    """Result of the SMTP self-test."""

    success: bool = True
    message: str = "SMTP test successful"
    sent_to: str


class IssueTypesResponse(BaseModel):
    """Options of the database's Issue Type select property."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    success: bool = True
    issue_types: List[IssueTypeOption]
