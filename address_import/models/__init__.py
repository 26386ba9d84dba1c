"""Domain models for the address bulk-import pipeline.

This package contains the dataclasses shared by the parser, validator, committer
and the storage backends.
"""

from .address import Address
from .config_models import DatabaseConfig, ImportConfig
from .error_record import ErrorRecord
from .import_result import ChunkResult, ChunkStatus, ImportResult, ImportRowError
from .template_field import AddressType, TemplateField
from .validation import ParsedRow, ValidationError, ValidationResult

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    # Schema
    "AddressType",
    "TemplateField",
    # Preview phase
    "ParsedRow",
    "ValidationError",
    "ValidationResult",
    # Commit phase
    "Address",
    "ChunkResult",
    "ChunkStatus",
    "ImportResult",
    "ImportRowError",
    "ErrorRecord",
]
