from .constants import APP_NAME, SCHEMA_VERSION

VERSION = "1.0.0"

__all__ = ["APP_NAME", "SCHEMA_VERSION", "VERSION"]
