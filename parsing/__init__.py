"""Parsing stage: raw page → cleaned text → structured ExtractedJob."""

from parsing.cleaners import clean, get_cleaner
from parsing.llm import ExtractionInvoker
from parsing.models import ExtractedJob, JobType, WorkArrangement
from parsing.normalizers import text_metadata, truncate, validate_text
from parsing.providers import ModelHandle, get_model

__all__ = [
    "ExtractedJob",
    "ExtractionInvoker",
    "JobType",
    "ModelHandle",
    "WorkArrangement",
    "clean",
    "get_cleaner",
    "get_model",
    "text_metadata",
    "truncate",
    "validate_text",
]
