"""Redaction of credential-like words in error text."""

import re

REDACTION_MARKER = "[REDACTED]"

# Matches "api key", "api-key", "api_key", "apikey" and the bare words
_CREDENTIAL_PATTERN = re.compile(
    r"api[ _-]?key|token|secret|auth|bearer",
    re.IGNORECASE,
)


def sanitize_error_message(error: object) -> str:
    """Return the text of an error with credential-like words redacted.

    Args:
        error: An exception or any object; non-exceptions are stringified.

    Returns:
        The message with every credential-like word replaced by
        ``[REDACTED]``. Other content is left untouched.
    """
    return _CREDENTIAL_PATTERN.sub(REDACTION_MARKER, str(error))
