"""
Token usage discovery.

This module provides:
- UsageIndexer: Reverse index from token paths to component usages
- ScanCache: TTL cache for built indexes
- find_corpus_files: Corpus discovery by glob patterns
"""

from chuk_mcp_tokens.usage.cache import ScanCache
from chuk_mcp_tokens.usage.corpus import find_corpus_files
from chuk_mcp_tokens.usage.indexer import (
    SignatureSet,
    UsageIndexer,
    css_var_name,
    normalize_value,
)

__all__ = [
    "ScanCache",
    "SignatureSet",
    "UsageIndexer",
    "css_var_name",
    "find_corpus_files",
    "normalize_value",
]
