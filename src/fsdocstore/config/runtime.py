from functools import lru_cache

from .loader import load_settings
from .settings import StoreSettings


@lru_cache(maxsize=1)
def get_settings() -> StoreSettings:
    return load_settings()
