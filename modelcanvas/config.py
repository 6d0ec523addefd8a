from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings."""

    # API settings
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_RELOAD: bool = True

    # Version and environment
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # History settings
    MAX_HISTORY_SIZE: int = 50

    # New entities are dropped on a deterministic grid
    ENTITY_GRID_COLUMNS: int = 4
    ENTITY_GRID_SPACING_X: int = 280
    ENTITY_GRID_SPACING_Y: int = 200
    ENTITY_GRID_PADDING: int = 50

    # Canvas defaults
    DEFAULT_CANVAS_VIEW: str = "entities"  # "entities", "services" or "both"
    DEFAULT_LAYOUT_PREFERENCE: str = "compact"

    class Config:
        env_file = ".env"

settings = Settings()
