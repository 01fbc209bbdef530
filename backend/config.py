"""
Game Configuration

Centralizes all tunable parameters for the clicker progression engine.
Values can be overridden from the environment (or a .env file) so the
server, the record service and the balance simulator share one source.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


@dataclass
class EconomyConfig:
    """Economy constants outside the upgrade catalog."""
    starting_click_power: float = 1.0
    producer_base_cost: float = 100.0
    producer_cost_multiplier: float = 1.15  # Geometric growth per owned producer
    shop_preview_levels: int = 5  # Upcoming costs shown per shop offer


@dataclass
class AchievementConfig:
    """Achievement thresholds."""
    first_hundred_clicks: int = 100
    thousand_points: float = 1000.0


@dataclass
class TimingConfig:
    """Timer periods in seconds."""
    production_interval: float = 1.0
    save_interval: float = 5.0
    feedback_delay: float = 1.0
    render_interval: float = 0.25  # Websocket TICK pushes


@dataclass
class PersistenceConfig:
    """Record store selection and connection settings."""
    backend: str = "sqlite"  # memory | sqlite | http
    sqlite_path: str = "clicker.db"
    service_url: str = "http://127.0.0.1:5000"
    user_id: str = "player1"
    http_timeout: float = 10.0


@dataclass
class GameConfig:
    """Master configuration for a game session."""

    economy: EconomyConfig = field(default_factory=EconomyConfig)
    achievements: AchievementConfig = field(default_factory=AchievementConfig)
    timing: TimingConfig = field(default_factory=TimingConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)

    def __post_init__(self):
        """Validation of timer periods and cost parameters."""
        if self.economy.starting_click_power <= 0:
            raise ValueError("starting_click_power must be positive")
        if self.economy.producer_base_cost <= 0:
            raise ValueError("producer_base_cost must be positive")
        if self.economy.producer_cost_multiplier < 1.0:
            raise ValueError("producer_cost_multiplier must be >= 1")

        for name in ("production_interval", "save_interval", "feedback_delay", "render_interval"):
            if getattr(self.timing, name) <= 0:
                raise ValueError(f"{name} must be positive")

        if self.persistence.backend not in ("memory", "sqlite", "http"):
            raise ValueError(
                f"persistence backend must be one of memory/sqlite/http, got {self.persistence.backend!r}"
            )

    @classmethod
    def from_env(cls) -> "GameConfig":
        """Build a config, applying CLICKER_* environment overrides."""
        load_dotenv()

        timing = TimingConfig(
            production_interval=float(os.getenv("CLICKER_PRODUCTION_INTERVAL", TimingConfig.production_interval)),
            save_interval=float(os.getenv("CLICKER_SAVE_INTERVAL", TimingConfig.save_interval)),
            feedback_delay=float(os.getenv("CLICKER_FEEDBACK_DELAY", TimingConfig.feedback_delay)),
            render_interval=float(os.getenv("CLICKER_RENDER_INTERVAL", TimingConfig.render_interval)),
        )
        persistence = PersistenceConfig(
            backend=os.getenv("CLICKER_STORE", PersistenceConfig.backend).lower(),
            sqlite_path=os.getenv("CLICKER_DB_PATH", PersistenceConfig.sqlite_path),
            service_url=os.getenv("CLICKER_SERVICE_URL", PersistenceConfig.service_url),
            user_id=os.getenv("CLICKER_USER_ID", PersistenceConfig.user_id),
            http_timeout=float(os.getenv("CLICKER_HTTP_TIMEOUT", PersistenceConfig.http_timeout)),
        )
        return cls(timing=timing, persistence=persistence)


# Global configuration instance
CONFIG = GameConfig.from_env()
