import os

# Basic settings helper to read environment configuration.


def _as_bool(val: str | None, default: bool = False) -> bool:
    if val is None:
        return default
    return val.lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(self) -> None:
        self.ADDRESS_LOOKUP_ENABLED: bool = _as_bool(os.getenv("ADDRESS_LOOKUP_ENABLED"), True)
        self.ADDRESS_LOOKUP_MAX: int = int(os.getenv("ADDRESS_LOOKUP_MAX", "30"))
        self.DEFAULT_RADIUS_METERS: float = float(os.getenv("DEFAULT_RADIUS_METERS", "1000"))


settings = Settings()
