"""
Utility functions for logging, error handling and tracing integration.
"""
import logging


def configure_logging(log_level: str = "INFO") -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger("courtsapp_mcp").setLevel(log_level)


def setup_app(app, config):
    """
    Set up error handling and tracing for a FastAPI application.

    Args:
        app: The FastAPI application
        config: ServerConfig carrying the service name and tracing switches

    Returns:
        The configured FastAPI application
    """
    # Import here to avoid circular dependency
    from .tracing import setup_tracing, instrument_fastapi
    from .middleware import setup_error_handling

    if config.enable_tracing:
        setup_tracing(
            service_name=config.server_name,
            environment=config.environment,
            otlp_endpoint=config.otlp_endpoint,
            service_version=config.server_version,
        )
        instrument_fastapi(app)

    setup_error_handling(app, service_name=config.server_name)
    return app


__all__ = [
    'configure_logging',
    'setup_app',
]
