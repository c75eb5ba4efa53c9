"""Token extraction, type inference and validation."""

from .extractor import MAX_DEPTH, extract
from .inference import infer_type, normalize_path
from .jsonc import load_document, strip_comments
from .shapes import SHAPES, TokenShape, classify
from .validation import TokenIssue, extract_aliases, validate_tokens

__all__ = [
    "MAX_DEPTH",
    "SHAPES",
    "TokenIssue",
    "TokenShape",
    "classify",
    "extract",
    "extract_aliases",
    "infer_type",
    "load_document",
    "normalize_path",
    "strip_comments",
    "validate_tokens",
]
