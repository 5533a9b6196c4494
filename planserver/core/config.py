import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False

    # Database
    DATABASE_URL: Optional[str] = None
    TEST_DATABASE_URL: Optional[str] = None

    # Auth
    AUTH_SECRET_KEY: Optional[str] = None
    ALLOW_HEADER_AUTH: bool = True  # X-User-Id / X-Org-Id, ignored in production

    # Cloud deployment (enables trial quotas)
    IS_CLOUD: bool = False
    TRIAL_MAX_PLANS: int = 10

    # Plan naming
    PLAN_NAME_MAX_ATTEMPTS: int = 10000
    PLAN_CREATE_RETRIES: int = 0  # 0 = surface insert conflicts as 409

    # Plan directories
    PLANS_DIR: str = "./data/plans"

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("planserver")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    required_keys = [
        "DATABASE_URL",
        "AUTH_SECRET_KEY",
    ]

    missing = [key for key in required_keys if not getattr(cfg, key, None)]
    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    if getattr(cfg, "TRIAL_MAX_PLANS", 0) < 0:
        message = "TRIAL_MAX_PLANS must be >= 0"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
