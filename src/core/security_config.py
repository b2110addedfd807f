"""Redaction rules for logs and field visibility rules for error responses."""

# Matched as case-insensitive substrings: "api_key" also covers
# "GODADDY_API_KEY" and "OPENAI_API_KEY".
SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        # Upstream credentials and auth schemes
        "secret",
        "token",
        "authorization",
        "api_key",
        "apikey",
        "x-api-key",
        "sso-key",
        "bearer",
        "password",
        "cookie",
    }
)

PRODUCTION_ERROR_FIELDS: frozenset[str] = frozenset({"correlation_id", "type"})

DEVELOPMENT_ERROR_FIELDS: frozenset[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Error-body fields that may be returned in `environment`.

    Anything other than "production" gets the development set.
    """
    if environment == "production":
        return set(PRODUCTION_ERROR_FIELDS)
    return set(DEVELOPMENT_ERROR_FIELDS)


def is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
