import json
import uuid
from urllib.parse import quote_plus

from .constants import DEFAULT_GRAPH, DEFAULT_ICON, DEFAULT_SCHEME


def page_link(name, graph=DEFAULT_GRAPH, scheme=DEFAULT_SCHEME):
    graph = graph or DEFAULT_GRAPH
    return f"{scheme}://graph/{graph}?page={quote_plus(name or '')}"


def make_output_items(pages, graph=DEFAULT_GRAPH, scheme=DEFAULT_SCHEME):
    return [
        {
            "uid": page["uuid"],
            "title": page["original_name"],
            "subtitle": page.get("tags") or "",
            "arg": page_link(page["original_name"], graph=graph, scheme=scheme),
            "icon": DEFAULT_ICON,
        }
        for page in pages
    ]


def make_tag_output_items(tags):
    # Tags have no identity of their own, so every call mints fresh uids.
    return [
        {
            "uid": uuid.uuid4().hex,
            "title": tag,
            "subtitle": "",
            "arg": tag,
            "icon": DEFAULT_ICON,
        }
        for tag in tags
    ]


def render_items(items):
    return json.dumps({"items": items}, ensure_ascii=False, indent=2)
