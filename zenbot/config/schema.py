"""Configuration schema for zenbot."""

from typing import Optional
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from zenbot.zen.commands import DEFAULT_INITIAL_GRACE_S
from zenbot.zen.gate import DEFAULT_COOLDOWN_S
from zenbot.zen.sweeper import DEFAULT_SWEEP_INTERVAL_S


# ============================================================================
# Channel configuration
# ============================================================================

class SlackConfig(BaseModel):
    model_config = {"extra": "ignore"}

    enabled: bool = False
    bot_token: str = ""
    app_token: str = ""
    channel_whitelist: list[str] = Field(default_factory=list)
    """Channel names ./zen commands are accepted in. Empty means everywhere."""


class ChannelsConfig(BaseModel):
    model_config = {"extra": "ignore"}

    slack: SlackConfig = Field(default_factory=SlackConfig)


# ============================================================================
# Zen configuration
# ============================================================================

class ZenConfig(BaseModel):
    """Timing of the zen core."""
    model_config = {"extra": "ignore"}

    sweep_interval_s: float = Field(default=DEFAULT_SWEEP_INTERVAL_S, gt=0)
    """Seconds between expiration sweeps"""

    cooldown_s: float = Field(default=DEFAULT_COOLDOWN_S, ge=0)
    """Minimum seconds between two violation notices for the same zen"""

    initial_grace_s: float = Field(default=DEFAULT_INITIAL_GRACE_S, ge=0)
    """Seconds after a zen starts before activity is first reported"""


# ============================================================================
# Main configuration
# ============================================================================

class Config(BaseSettings):
    """zenbot main configuration."""

    model_config = {
        "env_prefix": "ZENBOT_",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }

    zen: ZenConfig = Field(default_factory=ZenConfig)

    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)

    debug: bool = False

    # Logging
    log_level: str = "INFO"
    log_file: str = ""

    def get_enabled_channels(self) -> list[str]:
        """Names of the channels that are enabled."""
        enabled = []
        for name in ["slack"]:
            channel = getattr(self.channels, name, None)
            if channel and getattr(channel, "enabled", False):
                enabled.append(name)
        return enabled

    def get_log_level(self) -> str:
        if self.debug:
            return "DEBUG"
        return (self.log_level or "INFO").upper()

    def get_log_file(self) -> Optional[str]:
        return self.log_file or None
