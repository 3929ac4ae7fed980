import sys
from functools import lru_cache
from typing import Optional

from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict

from chainsim.schemas import FaultConfig, FaultKind


class Settings(BaseSettings):
    """Simulator configuration, read from CHAINSIM_* environment variables."""

    model_config = SettingsConfigDict(env_prefix="CHAINSIM_", extra="ignore")

    target_host: str = "rpc.bittorrentchain.io"
    chain_id: int = 199
    database_url: str = "sqlite://"
    journal_max_events: int = 5000
    log_level: str = "INFO"

    # Unset means every matched request is answered by the dispatch table.
    fault_kind: Optional[FaultKind] = None
    fault_status: int = 429
    fault_code: int = -32005
    fault_message: str = "rate limited"

    def fault_config(self) -> Optional[FaultConfig]:
        if self.fault_kind is None:
            return None
        return FaultConfig(
            kind=self.fault_kind,
            status=self.fault_status,
            code=self.fault_code,
            message=self.fault_message,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str, sink=None) -> int:
    """Replace loguru's default DEBUG sink with one at `level`."""
    logger.remove()
    return logger.add(sink if sink is not None else sys.stderr, level=level.upper())
