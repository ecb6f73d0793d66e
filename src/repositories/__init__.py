"""Repository layer for Notion records and staged uploads."""

from src.repositories.record_repository import RecordRepository
from src.repositories.upload_repository import UploadRepository

__all__ = ["RecordRepository", "UploadRepository"]
