"""Centralized defaults and timeouts."""

# Default viewport
DEFAULT_VIEWPORT = (1280, 720)

DEFAULT_BROWSER = "chromium"

# Timeouts (milliseconds)
DEFAULT_NAVIGATION_TIMEOUT_MS = 60_000
DEFAULT_ACTION_TIMEOUT_MS = 30_000
DEFAULT_PROBE_TIMEOUT_MS = 300  # per selector candidate
DEFAULT_SUBMIT_WAIT_MS = 10_000  # wait for navigation after an auth submit
DEFAULT_NEW_PAGE_SETTLE_MS = 1_000  # after actions that may open a tab

# Instruction files
DEFAULT_INSTRUCTIONS_FILE = "instructions.txt"
DEFAULT_ARTIFACTS_DIR = "artifacts"
DEFAULT_COMMENT_MARKER = "#"

SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")
