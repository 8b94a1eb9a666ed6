import logging
from functools import lru_cache
from pathlib import Path

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / '.env', env_file_encoding='utf-8', extra='ignore'
    )

    OPENAI_API_KEY: str
    OPENAI_API_URL: str | None = None
    EMBEDDING_MODEL: str = 'text-embedding-ada-002'
    CHAT_MODEL: str = 'gpt-3.5-turbo'
    CHAT_TEMP: float = 0.2
    CHAT_MAX_TOKENS: int = 512
    COURSE_NAME: str = 'IITM "Tools in Data Science"'

    CHROMADB_API_KEY: str
    CHROMADB_TENANT: str
    CHROMADB_COLLECTION: str
    CHROMADB_DATABASE: str = 'default_database'
    CHROMADB_HOST: str = 'api.trychroma.com'
    CHROMADB_PORT: int = 443
    CHROMADB_SSL: bool = True
    TOP_K: int = 15

    HOST: str = '0.0.0.0'
    PORT: int = 3000
    MAX_BODY_SIZE: int = 100 * 1024 * 1024
    LOG_LEVEL: str = 'INFO'

    EXCERPTS_PATH: Path = BASE_DIR / 'json-data' / 'excerpts'
    CHUNK_SIZE: int = 1000
    CHUNK_OVERLAP: int = 200


def missing_fields(exc: ValidationError) -> list[str]:
    return [
        str(error['loc'][0]) for error in exc.errors()
        if error['type'] == 'missing'
    ]


@lru_cache
def get_settings() -> Settings:
    try:
        return Settings()
    except ValidationError as exc:
        missing = missing_fields(exc)
        if missing:
            logger.critical(f'Missing {", ".join(missing)} in environment or .env')
        else:
            logger.critical(f'Invalid configuration: {exc}')
        raise SystemExit(1) from exc
