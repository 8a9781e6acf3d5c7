DEFAULT_SUCCESS_TIMEOUT_SEC = 5.0
DEFAULT_POLL_INTERVAL_SEC = 0.25
DEFAULT_SAMPLE_INTERVAL_SEC = 1.0
DEFAULT_MAX_CONCURRENCY = 1
