"""
Client settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Channel client settings with defaults for development."""

    # Transport
    # Default matches the local Phoenix endpoint used by the manual client
    socket_url: str = "ws://localhost:4000/socket/websocket"
    # Query parameter carrying the bearer token (opaque, never validated here)
    token_param: str = "token"
    open_timeout: float = 10.0  # Seconds allowed for the opening handshake
    close_timeout: float = 5.0  # Seconds allowed for the closing handshake

    # Join acknowledgment contract
    # A JOINING topic becomes JOINED on an inbound frame with this event whose
    # ref matches the join ref and whose payload.status equals join_ack_status.
    # An empty join_ack_status accepts any payload.
    join_ack_event: str = "phx_reply"
    join_ack_status: str = "ok"

    # Duplicate joins are benign under UI re-entrancy: warn unless strict
    strict_joins: bool = False

    # Logging
    log_frame_max_length: int = 100  # Truncation for raw frame text in logs

    # Environment
    environment: str = "development"
    debug: bool = False

    class Config:
        env_prefix = "WS_CHANNELS_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def validate_production(self) -> list[str]:
        """
        Validate that the settings are safe for production use.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.environment == "production":
            if not self.socket_url.startswith("wss://"):
                errors.append("SOCKET_URL must use wss:// in production")

            if self.debug:
                errors.append("DEBUG must be False in production")

        if not self.join_ack_event:
            errors.append("JOIN_ACK_EVENT must not be empty")

        if self.open_timeout <= 0 or self.close_timeout <= 0:
            errors.append("OPEN_TIMEOUT and CLOSE_TIMEOUT must be positive")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()
