import logging
import sys
import structlog
import os
from opentelemetry.instrumentation.logging import LoggingInstrumentor

# Event keys whose values must never reach a log sink
SENSITIVE_KEYS = frozenset(
    {"private_key", "alchemy_key", "rpc_credential", "api_secret", "x-api-secret"}
)
REDACTED = "[REDACTED]"


def get_log_level():
    """Get log level from environment or default to INFO"""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_log_renderer():
    """Get log renderer based on environment"""
    env = os.getenv("ENVIRONMENT", "development")
    # Use JSON format for tests and production
    if env in ["test", "production"]:
        return structlog.processors.JSONRenderer()
    # Pretty printing for local development
    return structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)


def redact_secrets(logger, method_name, event_dict):
    """Mask credential values, including inside nested dicts such as headers."""
    for key, value in event_dict.items():
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: REDACTED if str(k).lower() in SENSITIVE_KEYS else v
                for k, v in value.items()
            }
    return event_dict


def configure_logging():
    """Set up structlog + OTEL context injection."""
    # Configure shared processors for all loggers
    shared_processors = [
        # request_id bound by the API middleware
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.ExceptionPrettyPrinter(),
    ]

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            redact_secrets,
            get_log_renderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Tests swap processors at runtime (structlog.testing.capture_logs)
        cache_logger_on_first_use=os.getenv("ENVIRONMENT", "development") != "test",
    )

    # Set up stdlib logging
    env = os.getenv("ENVIRONMENT", "development")
    if env == "test":
        # In test mode, write to stdout for easier capture
        handler = logging.StreamHandler(sys.stdout)
    else:
        # In other modes, write to stderr (default)
        handler = logging.StreamHandler()

    # Configure the handler
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]  # Replace any existing handlers
    root_logger.setLevel(get_log_level())

    # Silence Uvicorn noise but keep access logs routed through structlog
    logging.getLogger("uvicorn.error").handlers.clear()
    logging.getLogger("uvicorn.access").handlers.clear()

    # web3 logs full RPC payloads (raw signed transactions) at DEBUG
    logging.getLogger("web3").setLevel(max(logging.INFO, root_logger.level))

    # Initialize OpenTelemetry logging instrumentation AFTER configuring logging
    LoggingInstrumentor().instrument(set_logging_format=False)


# Business Event Log Names
class BusinessEvents:
    """Standard names for business event logs"""

    API_ENTRY = "api.request"
    API_RESPONSE = "api.response"
    SERVICE_STARTED = "service.started"
    AUTH_REJECTED = "auth.rejected"
    TRANSFER_REQUESTED = "transfer.requested"
    TRANSFER_REJECTED = "transfer.rejected"
    TRANSFER_SUBMITTED = "transfer.submitted"
    TRANSFER_CONFIRMED = "transfer.confirmed"
    TRANSFER_FAILED = "transfer.failed"


# Configure logging when module is imported
configure_logging()
