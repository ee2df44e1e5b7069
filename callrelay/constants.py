"""
Application constants with documented reasoning.

This file centralizes "magic numbers" used throughout the codebase,
providing clear documentation for why each value was chosen.
"""

# =============================================================================
# GOTO OAUTH
# =============================================================================

# Scope requested in the client-credentials exchange; only SMS sending is needed
TOKEN_SCOPE = "messaging.v1.send"

# Lifetime assumed when the issuer omits expires_in (GoTo tokens last one hour)
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

# Tokens are treated as expired this long before the issuer says they are,
# so a request never starts with a token that dies mid-flight
TOKEN_REFRESH_MARGIN_SECONDS = 300

# =============================================================================
# HTTP CLIENT TIMEOUTS
# =============================================================================

# Total timeout for calls to the GoTo token and messaging endpoints
# 30 seconds allows for slow networks while preventing indefinite hangs
HTTP_CLIENT_TIMEOUT_SECONDS = 30

# =============================================================================
# CHANGELOG
# =============================================================================

# Number of changelog entries kept; older entries are dropped first
CHANGELOG_MAX_ENTRIES = 100

# webhookName recorded for mutations that are not tied to one config
SYSTEM_CHANGELOG_NAME = "system"

# =============================================================================
# NOTIFICATION CONFIGS
# =============================================================================

# Config used by /test-sms when no type is given
DEFAULT_CONFIG_NAME = "general"

# Names appear in webhook URLs, so they are limited to URL-safe characters
CONFIG_NAME_PATTERN = r"^[A-Za-z0-9_-]+$"
CONFIG_NAME_MAX_LENGTH = 64

# Template seeded for the default config on first start
DEFAULT_MESSAGE_TEMPLATE = (
    "Call Alert!\n"
    "From: {callerName} ({callerNumber})\n"
    "To Ext: {extension}\n"
    "Time: {time}"
)

# Body used by /test-sms when the caller does not supply one
DEFAULT_TEST_MESSAGE = "Test Alert from GoTo Webhook\nTime: {time}\nYour webhook is working!"

# =============================================================================
# PERSISTENCE
# =============================================================================

WEBHOOKS_FILENAME = "webhooks.json"
ARCHIVED_FILENAME = "archived.json"
CHANGELOG_FILENAME = "changelog.json"
