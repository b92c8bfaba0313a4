"""Shared constants for journeyflow."""

# Reserved request-data key carrying an instance's unique token.
UNIQUE_KEY_NAME = "uniqueKey"

# Suffix marking a dependent request-data key as optional.
OPTIONAL_KEY_SUFFIX = "?"

DEFAULT_KEY_PREFIX = "JourneyState:"

DEFAULT_MISSING_INSTANCE_STATUS_CODE = 404
