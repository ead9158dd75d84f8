"""HTTP constants for the client runtime.

Centralizes status codes, header names and default limits shared across stages.
"""

# HTTP Status Code Ranges
HTTP_STATUS_OK_MIN = 200
HTTP_STATUS_OK_MAX = 300
HTTP_STATUS_BAD_REQUEST = 400
HTTP_STATUS_UNAUTHORIZED = 401
HTTP_STATUS_SERVER_ERROR_MIN = 500
HTTP_STATUS_SERVER_ERROR_MAX = 600

# Header names
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_LOCALE = "locale"

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_MULTIPART = "multipart/form-data"

# Multipart uploads and downloads never run with less than this (seconds)
MIN_TRANSFER_TIMEOUT_SECONDS = 60.0

# Chunk size for streaming reads
DEFAULT_CHUNK_SIZE = 8192

# Fraction of the cache capacity evicted in one LRU batch
LRU_EVICTION_FRACTION = 0.1

# Methods eligible for deduplication when GET-only mode is off
DEDUP_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
