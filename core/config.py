import logging
import logging.config
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class LoggingConfig(BaseSettings):
    """Enhanced logging configuration that supports both simple and dictConfig formats"""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    # For dictConfig support
    use_dict_config: bool = False
    dict_config_path: Optional[str] = None
    dict_config: Optional[Dict] = None


class SecurityConfig(BaseSettings):
    cors_origins: List[str] = ["*"]


class StorageConfig(BaseSettings):
    """Where uploaded files and mesh metadata live"""

    upload_dir: str = "uploads"
    public_prefix: str = "/uploads"
    database_url: str = "sqlite:///./model_viewer.db"
    max_upload_size_mb: int = 200


class ViewerConfig(BaseSettings):
    """Tuning constants for the 3D viewer"""

    reference_size: float = 5.0
    fov: float = 75.0
    near: float = 0.1
    far: float = 1000.0
    damping_factor: float = 0.05
    frame_rate: float = 60.0
    fit_direction: Tuple[float, float, float] = (0.6, 0.6, 0.8)

    viewport_width: int = 800
    viewport_height: int = 600
    screen_width: int = 1920
    screen_height: int = 1080
    allow_fullscreen: bool = True

    background_color: int = 0xF5F7FA
    obj_color: int = 0x667EEA
    stl_color: int = 0x764BA2

    @field_validator("reference_size", "fov", "frame_rate")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("damping_factor")
    @classmethod
    def validate_damping(cls, v):
        if not 0 < v <= 1:
            raise ValueError("damping_factor must be in (0, 1]")
        return v


class Settings(BaseSettings):
    """Main settings class

    Environment variables:
        MCV_DEBUG: Enable debug mode (default: False)
        MCV_ENVIRONMENT: development or production (default: development)
    """

    logging: LoggingConfig = LoggingConfig()
    security: SecurityConfig = SecurityConfig()
    storage: StorageConfig = StorageConfig()
    viewer: ViewerConfig = ViewerConfig()

    # Environment
    environment: str = "development"
    debug: bool = False

    model_config = SettingsConfigDict(env_prefix="MCV_", case_sensitive=False)


def load_config_from_file(config_path: str) -> Settings:
    """Load configuration from YAML file"""
    config_file = Path(config_path)

    if not config_file.exists():
        logger.warning(f"Config file {config_path} not found, using defaults")
        return Settings()

    try:
        with open(config_file, "r") as f:
            config_data = yaml.safe_load(f) or {}

        settings = Settings()

        # Update configurations if they exist in the file
        if "logging" in config_data:
            settings.logging = LoggingConfig(**config_data["logging"])
        if "security" in config_data:
            settings.security = SecurityConfig(**config_data["security"])
        if "storage" in config_data:
            settings.storage = StorageConfig(**config_data["storage"])
        if "viewer" in config_data:
            settings.viewer = ViewerConfig(**config_data["viewer"])

        # Update other settings
        if "environment" in config_data:
            settings.environment = config_data["environment"]
        if "debug" in config_data:
            settings.debug = config_data["debug"]

        logger.info(f"Successfully loaded configuration from {config_path}")
        return settings

    except Exception as e:
        logger.error(f"Error loading config from {config_path}: {str(e)}")
        logger.info("Using default configuration")
        return Settings()


def load_logging_dict_config(config_path: str) -> Optional[Dict]:
    """Load logging configuration from YAML file in dictConfig format"""
    config_file = Path(config_path)

    if not config_file.exists():
        logger.warning(f"Logging config file {config_path} not found")
        return None

    try:
        with open(config_file, "r") as f:
            logging_config = yaml.safe_load(f)

        # Ensure logs directory exists
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)

        return logging_config
    except Exception as e:
        logger.error(f"Error loading logging config from {config_path}: {str(e)}")
        return None


# Global settings instance
settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance"""
    global settings
    if settings is None:
        config_dir = Path(__file__).parent.parent / "config"
        settings = load_config_from_file(str(config_dir / "system.yaml"))

    return settings


def setup_logging(config: LoggingConfig):
    """Setup logging configuration with support for both simple and dictConfig formats"""

    config_dir = Path(__file__).parent.parent / "config"
    logging_yaml_path = Path(config.dict_config_path or config_dir / "logging.yaml")

    if config.use_dict_config and config.dict_config:
        try:
            logging.config.dictConfig(config.dict_config)
            logger.info("Logging configured from inline dictConfig")
            return
        except Exception as e:
            logger.error(f"Failed to configure logging from dictConfig: {str(e)}")

    if logging_yaml_path.exists():
        dict_config = load_logging_dict_config(str(logging_yaml_path))
        if dict_config:
            try:
                logging.config.dictConfig(dict_config)
                logger.info(f"Logging configured from YAML: {logging_yaml_path}")
                return
            except Exception as e:
                logger.error(f"Failed to configure logging from YAML: {str(e)}")
                logger.info("Falling back to simple logging configuration")

    # Fallback to simple configuration
    level = getattr(logging, config.level.upper())

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if config.file:
        file_path = Path(config.file)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(config.file))
    else:
        logs_dir = Path("logs")
        logs_dir.mkdir(exist_ok=True)
        handlers.append(logging.FileHandler(str(logs_dir / "app.log")))

    logging.basicConfig(
        level=level,
        format=config.format,
        handlers=handlers,
        force=True,  # Override any existing configuration
    )

    uvicorn_logger = logging.getLogger("uvicorn")
    uvicorn_logger.setLevel(level)

    logger.info(
        f"Logging configured: level={config.level}, file={config.file or 'logs/app.log'}"
    )
