"""Application-wide constants.

This module defines constants used throughout the application
to avoid magic numbers and ensure consistency.
"""

# Registry schema holding the system-wide tenant catalog
REGISTRY_SCHEMA = "admin"

# PostgreSQL identifier limit; namespace names are prefix + 32 hex chars
MAX_NAMESPACE_LENGTH = 63

# Layout version recorded in admin.tenant_migrations once a namespace is complete
NAMESPACE_LAYOUT_VERSION = "0001_initial_layout"

# Transaction-local settings read by the audit trigger
AUDIT_SETTING_USER_ID = "lawdesk.user_id"
AUDIT_SETTING_IP_ADDRESS = "lawdesk.ip_address"
AUDIT_SETTING_USER_AGENT = "lawdesk.user_agent"
AUDIT_SETTING_REQUEST_ID = "lawdesk.request_id"

# Hash lengths
SHA256_HEX_LENGTH = 64

# String field lengths
MAX_EMAIL_LENGTH = 255
MAX_NAME_LENGTH = 255
MAX_IPV6_LENGTH = 45
MAX_USER_AGENT_LENGTH = 512
MAX_LICENSE_NUMBER_LENGTH = 64
MAX_REQUEST_ID_LENGTH = 64

# Credential requirements
MIN_SECRET_LENGTH = 8
MAX_SECRET_LENGTH = 128
BCRYPT_ROUNDS = 12

# Plan defaults
DEFAULT_PLAN_TYPE = "basic"
DEFAULT_MAX_USERS = 5
DEFAULT_MAX_STORAGE_GB = 10

# Pagination defaults
DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100

# Token settings
ACCESS_TOKEN_JTI_LENGTH = 32
REFRESH_TOKEN_BYTES = 32
REFRESH_TOKEN_SEPARATOR = "."

# Secret key requirements
MIN_SECRET_KEY_LENGTH = 32
DEFAULT_INSECURE_ACCESS_SECRET = "change-me-access-secret"
DEFAULT_INSECURE_REFRESH_SECRET = "change-me-refresh-secret"

# Seconds a client should wait before retrying after a pool timeout
DATABASE_BUSY_RETRY_AFTER = 1
