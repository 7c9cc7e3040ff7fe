import logging
import os

from .constants import DEFAULT_API_URL, DEFAULT_GRAPH, DEFAULT_SCHEME
from .errors import ConfigError

logger = logging.getLogger("LogseqSearch")

DEFAULT_CONFIG = {
    "api_url": DEFAULT_API_URL,
    "token": "",
    "timeout": None,
    "graph": DEFAULT_GRAPH,
    "scheme": DEFAULT_SCHEME,
    "extension_path": "",
}

_ENV_KEYS = {
    "LogseqApiUrl": "api_url",
    "LogseqToken": "token",
    "LogseqTimeout": "timeout",
    "LogseqGraph": "graph",
    "LogseqSimpleExtension": "extension_path",
}


def load_config(environ=None) -> dict:
    environ = os.environ if environ is None else environ
    overrides = {}
    for env_key, key in _ENV_KEYS.items():
        value = (environ.get(env_key) or "").strip()
        if value:
            overrides[key] = value
    config = {**DEFAULT_CONFIG, **overrides}

    if config["timeout"] is not None:
        try:
            config["timeout"] = float(config["timeout"])
        except (TypeError, ValueError):
            raise ConfigError(f"LogseqTimeout must be a number, got {config['timeout']!r}")
        if config["timeout"] <= 0:
            config["timeout"] = None

    logger.debug(
        "config: api_url=%s graph=%s timeout=%s extension=%r token_set=%s",
        config["api_url"],
        config["graph"],
        config["timeout"],
        config["extension_path"],
        bool(config["token"]),
    )
    return config


def require_token(config: dict) -> str:
    token = (config.get("token") or "").strip()
    if not token:
        raise ConfigError("LogseqToken environment variable is not set")
    return token
