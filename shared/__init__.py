"""
Shared module for cross-cutting concerns of the channel client.

STRUCTURE:
- shared.config: Configuration
  - settings.py: Environment config (pydantic-settings)
  - logging.py: Structured logging, token masking, connection audit

- shared.infrastructure: Runtime plumbing
  - correlation.py: Frame ref/topic context for log records

- shared.utils: Utilities
  - exceptions.py: Channel exceptions with auto-logging

IMPORT EXAMPLES:
    from shared.config.settings import settings, get_settings
    from shared.config.logging import get_logger
    from shared.utils.exceptions import NotConnectedError
"""
