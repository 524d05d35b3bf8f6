from functools import lru_cache
from typing import Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings

from .utils import generate_uri_for_host_and_port


class ServiceSettings(BaseModel):
    PROTOCOL: str = "http"
    HOST: str = "127.0.0.1"
    PORT: Optional[int] = None
    API_KEY: Optional[str] = None

    @property
    def uri(self) -> str:
        return generate_uri_for_host_and_port(self.PROTOCOL, self.HOST, self.PORT)


class RegistrySettings(ServiceSettings):
    PORT: Optional[int] = 31310


class TokenizationSettings(ServiceSettings):
    PORT: Optional[int] = 31311


class RetirementExplorerSettings(ServiceSettings):
    PROTOCOL: str = "https"
    HOST: str = "api.climateexplorer.chiamanagement.io"


class ChiaSettings(BaseModel):
    DATALAYER_HOST: str = "https://127.0.0.1:8562"
    WALLET_HOST: str = "https://127.0.0.1:9256"
    CERTIFICATE_FOLDER_PATH: str = "~/.chia/mainnet/config/ssl"
    ALLOW_SELF_SIGNED_CERTIFICATES: bool = True


class Settings(BaseSettings):
    CADT: RegistrySettings = RegistrySettings()
    CHIA_CLIMATE_TOKENIZATION: TokenizationSettings = TokenizationSettings()
    RETIREMENT_EXPLORER: RetirementExplorerSettings = RetirementExplorerSettings()
    CHIA: ChiaSettings = ChiaSettings()

    # "test" short-circuits warehouse confirmation and registry sync waits
    MODE: str = "production"
    SYNC_POLL_INTERVAL_S: float = 5.0
    CONFIRMATION_POLL_INTERVAL_S: float = 30.0
    CONFIRMATION_MAX_ATTEMPTS: int = 60
    RETRY_UNAVAILABLE_SOURCES: bool = False
    REQUEST_TIMEOUT_S: float = 300.0

    @property
    def is_test_mode(self) -> bool:
        return self.MODE.lower() == "test"

    class Config:
        env_file = ".env"
        env_nested_delimiter = "__"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
