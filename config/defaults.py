"""Default pipeline settings."""

import os

DEFAULTS = {
    # Gemini reads the YouTube reference; the later stages are text only.
    "plan_model": os.environ.get("VIDEO2APP_PLAN_MODEL", "gemini-2.5-flash"),
    "code_model": os.environ.get("VIDEO2APP_CODE_MODEL", "gemini-2.5-flash"),
    "review_model": os.environ.get("VIDEO2APP_REVIEW_MODEL", "gemini-2.5-flash"),
    "temperature": 0.75,
    "max_tokens": 32768,        # only used by the anthropic backend
    "request_timeout": 300,     # seconds, transport-level only
    "probe_settle_delay": 1.5,  # seconds after the probe frame loads
    "probe_timeout": 8.0,       # absolute failsafe for the probe
    "history_limit": 20,
    "console_limit": 500,       # live console messages kept per run
    "validate_input_url": True,
    "oembed_timeout": 10,
}
