"""Address bulk-import and validation pipeline.

Upload a CSV/XLSX file of addresses, preview the per-row validation result,
then commit the reviewed rows chunk by chunk.
"""

from .db.memory_store import InMemoryAddressStore
from .db.store import AddressStore, StorageError
from .excel.reader import ParseError
from .excel.template import generate_address_template
from .models import AddressType, ImportResult, ValidationError, ValidationResult
from .services.default_policies import ensure_default_policies
from .services.formats import validate_address_format
from .services.pipeline import commit, generate_error_artifact, validate_upload
from .services.required_policy import validate_address

__all__ = [
    "AddressStore",
    "AddressType",
    "ImportResult",
    "InMemoryAddressStore",
    "ParseError",
    "StorageError",
    "ValidationError",
    "ValidationResult",
    "commit",
    "ensure_default_policies",
    "generate_address_template",
    "generate_error_artifact",
    "validate_address",
    "validate_address_format",
    "validate_upload",
]
