import json
from datetime import datetime, timezone


def now_iso():
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat()


def json_dumps(obj):
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), sort_keys=True)


def stringify_tag(value):
    # JSON scalars keep their JSON spelling; containers are stored as compact JSON.
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        # Large magnitudes keep exponent form (1e+21).
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, dict)):
        return json_dumps(value)
    return str(value)


def extract_tags(properties):
    if not isinstance(properties, dict):
        return []
    tags = properties.get("tags")
    if not isinstance(tags, list):
        return []
    return [stringify_tag(t) for t in tags]
