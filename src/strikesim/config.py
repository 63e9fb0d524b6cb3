from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

VERSION = "0.1.0"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SS_",
    )

    # Monte Carlo simulation
    simulation_num_paths: int = 50000
    simulation_batch_size: int = 5000
    simulation_block_size: int = 4096  # paths per chunk, each with its own random stream
    simulation_max_paths: int = 1_000_000
    simulation_confidence: float = 0.95
    simulation_seed: int | None = None  # None = entropy seeded
    simulation_regime_discretization: Literal["exact", "linear"] = "exact"  # linear: rate·dt, unclamped

    # API Server
    cors_origins: list[str] = ["http://localhost:3000"]

    # Cache
    redis_url: str = ""  # empty = in-memory only
    cache_ttl: int = 60  # seconds
    cache_max_entries: int = 50

    # Edge calculation
    min_edge_threshold: float = 2.0  # cents

    def engine_kwargs(self) -> dict:
        """Keyword arguments for MonteCarloEngine drawn from these settings."""
        return {
            "block_size": self.simulation_block_size,
            "confidence": self.simulation_confidence,
            "regime_discretization": self.simulation_regime_discretization,
        }
