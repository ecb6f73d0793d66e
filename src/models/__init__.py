"""Data models for the Service Request Relay."""

from src.models.record import IssueTypeOption, Record, RecordSchema

__all__ = ["Record", "RecordSchema", "IssueTypeOption"]
