import asyncio
import json
import logging

import aiohttp

from .config import DEFAULT_CONFIG, require_token
from .constants import GET_ALL_PAGES_METHOD
from .errors import DecodeError, TransportError

logger = logging.getLogger("LogseqSearch")


def _to_int(value, field, index):
    if isinstance(value, bool):
        raise DecodeError(f"page #{index}: {field} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if value is None:
        return 0
    raise DecodeError(f"page #{index}: {field} must be an integer, got {value!r}")


def decode_page(obj, index=0):
    """Normalize one API page object into the store's page dict."""
    if not isinstance(obj, dict):
        raise DecodeError(f"page #{index}: expected an object, got {type(obj).__name__}")
    if obj.get("id") is None:
        raise DecodeError(f"page #{index}: missing id")

    name = obj.get("originalName")
    if name is None:
        name = ""
    if not isinstance(name, str):
        raise DecodeError(f"page #{index}: originalName must be a string, got {name!r}")

    uuid = obj.get("uuid") or ""
    if not isinstance(uuid, str):
        raise DecodeError(f"page #{index}: uuid must be a string, got {uuid!r}")

    properties = obj.get("properties")
    if properties is not None and not isinstance(properties, dict):
        raise DecodeError(f"page #{index}: properties must be an object, got {type(properties).__name__}")

    return {
        "id": _to_int(obj.get("id"), "id", index),
        "created_at": _to_int(obj.get("createdAt"), "createdAt", index),
        "updated_at": _to_int(obj.get("updatedAt"), "updatedAt", index),
        "uuid": uuid,
        "journal": bool(obj.get("journal?")),
        "original_name": name,
        "properties": properties,
    }


def decode_pages(data):
    if not isinstance(data, list):
        raise DecodeError(f"expected a list of pages, got {type(data).__name__}")
    return [decode_page(obj, i) for i, obj in enumerate(data)]


class LogseqClient:
    def __init__(self, config: dict):
        self.config = {**DEFAULT_CONFIG, **config}

    @property
    def _endpoint(self) -> str:
        return self.config["api_url"]

    @property
    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {require_token(self.config)}",
            "Content-Type": "application/json; charset=utf-8",
        }

    async def fetch_pages(self) -> list[dict]:
        headers = self._headers
        body = {"method": GET_ALL_PAGES_METHOD}
        timeout = aiohttp.ClientTimeout(total=self.config.get("timeout"))
        logger.info("Fetching pages from %s", self._endpoint)

        try:
            async with aiohttp.ClientSession(timeout=timeout, trust_env=False) as session:
                async with session.post(self._endpoint, json=body, headers=headers) as resp:
                    text = await resp.text()
                    if resp.status < 200 or resp.status >= 300:
                        raise TransportError(
                            f"Logseq API returned {resp.status}: {text[:200] if text.strip() else '(empty body)'}"
                        )
        except aiohttp.ClientError as exc:
            raise TransportError(f"Cannot reach Logseq API at {self._endpoint}: {exc}") from exc
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Logseq API timed out after {self.config.get('timeout')}s") from exc

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"Logseq API returned invalid JSON: {exc}") from exc

        pages = decode_pages(data)
        logger.info("Fetched %d pages", len(pages))
        return pages
