from typing import List, Optional
from urllib.parse import quote_plus
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # --- Basic configuration ---
    APP_NAME: str = "Repokit Library"
    APP_DESCRIPTION: str = "Repository layer with request-driven search, sort, filter and pagination"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"  # development, production, testing
    DEBUG: bool = True

    # --- Database (SQLModel over an async driver) ---
    DB_DRIVER: str = "mysql+aiomysql"
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_USER: str = "root"
    DB_PASSWORD: str = "root"
    DB_NAME: str = "app_db"
    DB_URL: Optional[str] = None  # Full URL override, e.g. sqlite+aiosqlite:///./app.db
    DB_ECHO: bool = False
    DB_AUTO_CREATE: bool = False  # Create tables on startup (no migrations here)

    @property
    def DATABASE_URL(self) -> str:
        if self.DB_URL:
            return self.DB_URL
        safe_password = quote_plus(self.DB_PASSWORD)
        return f"{self.DB_DRIVER}://{self.DB_USER}:{safe_password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # --- Logging ---
    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    # --- Pagination ---
    PAGINATION_LIMIT: int = 10

    # --- Criteria (request-driven search/sort/filter) ---
    # Conditions a caller may request via searchFields=name:like
    CRITERIA_ACCEPTED_CONDITIONS: List[str] = ["=", "like"]
    # Raise on directives that cannot be applied instead of logging and skipping them
    CRITERIA_STRICT: bool = False
    CRITERIA_PARAM_SEARCH: str = "search"
    CRITERIA_PARAM_SEARCH_FIELDS: str = "searchFields"
    CRITERIA_PARAM_FILTER: str = "filter"
    CRITERIA_PARAM_ORDER_BY: str = "orderBy"
    CRITERIA_PARAM_SORTED_BY: str = "sortedBy"
    CRITERIA_PARAM_WITH: str = "with"
    CRITERIA_PARAM_SORT_BY: str = "sort_by"
    CRITERIA_PARAM_SORT_DIR: str = "sort_dir"
    CRITERIA_PARAM_PAGE: str = "page"

    # --- API route prefixes ---
    API_V1_LIBRARY_PREFIX: str = "/api/v1/library"

    # --- Pydantic ---
    # Load env from project root .env; priority: env vars > .env > defaults
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )


class CriteriaParamNames(BaseModel):
    """Request parameter names read by the criteria layer."""
    model_config = ConfigDict(frozen=True)

    search: str = "search"
    search_fields: str = "searchFields"
    filter: str = "filter"
    order_by: str = "orderBy"
    sorted_by: str = "sortedBy"
    with_: str = "with"
    sort_by: str = "sort_by"
    sort_dir: str = "sort_dir"
    page: str = "page"


class CriteriaConfig(BaseModel):
    """Read-only criteria configuration, built once at startup and passed to every component."""
    model_config = ConfigDict(frozen=True)

    pagination_limit: int = 10
    accepted_conditions: frozenset = frozenset({"=", "like"})
    strict: bool = False
    params: CriteriaParamNames = CriteriaParamNames()

    @classmethod
    def from_settings(cls, source: Settings) -> "CriteriaConfig":
        return cls(
            pagination_limit=source.PAGINATION_LIMIT,
            accepted_conditions=frozenset(c.strip().lower() for c in source.CRITERIA_ACCEPTED_CONDITIONS),
            strict=source.CRITERIA_STRICT,
            params=CriteriaParamNames(
                search=source.CRITERIA_PARAM_SEARCH,
                search_fields=source.CRITERIA_PARAM_SEARCH_FIELDS,
                filter=source.CRITERIA_PARAM_FILTER,
                order_by=source.CRITERIA_PARAM_ORDER_BY,
                sorted_by=source.CRITERIA_PARAM_SORTED_BY,
                with_=source.CRITERIA_PARAM_WITH,
                sort_by=source.CRITERIA_PARAM_SORT_BY,
                sort_dir=source.CRITERIA_PARAM_SORT_DIR,
                page=source.CRITERIA_PARAM_PAGE,
            ),
        )


# Singleton settings instance
settings = Settings()

# Built once from settings; read-only thereafter
criteria_config = CriteriaConfig.from_settings(settings)
