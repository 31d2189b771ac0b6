"""Shop settings read from the environment.

Protean's own configuration (databases, event store, processing mode) lives under
``[tool.protean]`` in ``pyproject.toml``; these are the storefront's business knobs.
Each ``Settings()`` reads the environment as it is at construction time.
"""

import os

from pydantic import BaseModel, Field


def _env(name, default):
    return lambda: os.getenv(f"STOREFRONT_{name}", default)


def _env_int(name, default):
    return lambda: int(os.getenv(f"STOREFRONT_{name}", str(default)))


class Settings(BaseModel):
    CURRENCY: str = Field(default_factory=_env("CURRENCY", "VND"))
    SHIPPING_FEE: int = Field(default_factory=_env_int("SHIPPING_FEE", 30000))
    FREE_SHIPPING_THRESHOLD: int = Field(default_factory=_env_int("FREE_SHIPPING_THRESHOLD", 500000))
    ORDER_CODE_PREFIX: str = Field(default_factory=_env("ORDER_CODE_PREFIX", "NOEL"))
    DEFAULT_PAGE_SIZE: int = Field(default_factory=_env_int("DEFAULT_PAGE_SIZE", 20))
    LOG_JSON: bool = Field(default_factory=lambda: os.getenv("STOREFRONT_LOG_JSON", "false").lower() == "true")


settings = Settings()
