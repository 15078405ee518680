"""Shared failure code constants for price analysis error handling."""

VALIDATION_ERROR = "VALIDATION_ERROR"
SCRAPE_FAILED = "SCRAPE_FAILED"
NO_RESULTS = "NO_RESULTS"
GENERATION_FAILED = "GENERATION_FAILED"
STEP_TIMEOUT = "STEP_TIMEOUT"
INTERNAL_ERROR = "INTERNAL_ERROR"

HTTP_STATUS_BY_CODE = {
    VALIDATION_ERROR: 400,
    NO_RESULTS: 404,
    SCRAPE_FAILED: 502,
    GENERATION_FAILED: 502,
    STEP_TIMEOUT: 504,
    INTERNAL_ERROR: 500,
}
