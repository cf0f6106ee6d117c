"""
Constants and enums for the Hetzner console core.

This module centralizes the magic strings and limits used throughout
the pipeline to ensure consistency between validation, persistence and
the upstream gateway.
"""

from enum import Enum

HETZNER_API_BASE_URL = "https://api.hetzner.cloud/v1"

# RFC 1123 hostname, lowercase only
HOSTNAME_PATTERN = r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?(\.[a-z0-9]([a-z0-9-]*[a-z0-9])?)*$"
MAX_HOSTNAME_LENGTH = 63

MAX_USER_DATA_BYTES = 32 * 1024

DEFAULT_METRICS_WINDOW_HOURS = 24


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    DATABASE_URL = "DATABASE_URL"
    DATABASE_ECHO = "DATABASE_ECHO"
    DATABASE_POOL_SIZE = "DATABASE_POOL_SIZE"
    APP_ENV = "APP_ENV"
    LOG_LEVEL = "LOG_LEVEL"
    DEBUG = "DEBUG"
    HETZNER_API_TOKEN = "HETZNER_API_TOKEN"
    HETZNER_API_TOKEN_SCOPE = "HETZNER_API_TOKEN_SCOPE"
    HETZNER_API_BASE_URL = "HETZNER_API_BASE_URL"
    HETZNER_API_TIMEOUT = "HETZNER_API_TIMEOUT"
    EXTENSION_ID = "EXTENSION_ID"
    EXTENSION_SECRET = "EXTENSION_SECRET"
    SESSION_JWKS_URL = "SESSION_JWKS_URL"
    ENCRYPTION_KEY = "ENCRYPTION_KEY"


class LogContextKey(str, Enum):
    """Standard keys for logging context."""

    OWNER_ID = "owner_id"
    USER_ID = "user_id"
    OPERATION = "operation"
    CORRELATION_ID = "correlation_id"
    DURATION_MS = "duration_ms"
    ERROR_CODE = "error_code"


class ResourceType(str, Enum):
    """Upstream resource kinds that can carry assignments and notes."""

    SERVER = "server"
    VOLUME = "volume"
    FLOATING_IP = "floating_ip"
    PRIMARY_IP = "primary_ip"
    LOAD_BALANCER = "load_balancer"
    NETWORK = "network"
    FIREWALL = "firewall"


class ServerStatus(str, Enum):
    """Server status values reported by the upstream API."""

    RUNNING = "running"
    INITIALIZING = "initializing"
    STARTING = "starting"
    STOPPING = "stopping"
    OFF = "off"
    DELETING = "deleting"
    MIGRATING = "migrating"
    REBUILDING = "rebuilding"
    UNKNOWN = "unknown"


class ServerAction(str, Enum):
    """Power actions an operator may trigger on a server."""

    POWERON = "poweron"
    POWEROFF = "poweroff"
    REBOOT = "reboot"
    SHUTDOWN = "shutdown"


class TokenSource(str, Enum):
    """Where the effective API token for an identity comes from."""

    ENVIRONMENT = "environment"
    DATABASE = "database"
    NONE = "none"


class MetricType(str, Enum):
    """Metric selections accepted by the upstream metrics endpoint."""

    CPU = "cpu"
    DISK = "disk"
    NETWORK = "network"
    CPU_DISK = "cpu,disk"
    CPU_NETWORK = "cpu,network"
    DISK_NETWORK = "disk,network"
    ALL = "cpu,disk,network"
