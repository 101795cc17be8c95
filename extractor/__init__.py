"""Product card extraction engine.

Fetches a product page, runs it through a chain of metadata parsers and
returns a normalized card (title, image, price, domain, url, timestamp).
"""

from .config import ExtractorConfig
from .errors import ExtractorError, FetchError, InvalidInputError
from .models import ExtractionResult, PartialMetadata
from .service import ExtractionRun, ExtractionService, ExtractionState

__all__ = [
    "ExtractionResult",
    "ExtractionRun",
    "ExtractionService",
    "ExtractionState",
    "ExtractorConfig",
    "ExtractorError",
    "FetchError",
    "InvalidInputError",
    "PartialMetadata",
]
