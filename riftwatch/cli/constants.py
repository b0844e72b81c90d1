"""Exit codes shared by CLI commands."""

SYSTEM_EXIT_CODE = 1
VALIDATION_EXIT_CODE = 2
FETCH_EXIT_CODE = 3
STORE_EXIT_CODE = 4

MAX_TOP = 10

LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")
