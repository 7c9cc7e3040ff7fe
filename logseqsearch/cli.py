import argparse
import asyncio
import logging
import sys

from . import VERSION
from .config import load_config
from .db import PageStore
from .errors import EmptyTagsError, LogseqSearchError
from .output import make_output_items, make_tag_output_items, render_items
from .source import LogseqClient

logger = logging.getLogger("LogseqSearch")


def _build_parser():
    ap = argparse.ArgumentParser(
        prog="logseq-search",
        description="Mirror Logseq pages into a local index and query it for Alfred",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    ap.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    sub = ap.add_subparsers(dest="command", metavar="{build,query,tag,tags}")
    sub.required = True

    sub.add_parser("build", help="Fetch all pages and rebuild the index from scratch")

    query = sub.add_parser("query", help="Full-text search over page names")
    query.add_argument("text", help="FTS5 match expression")

    tag = sub.add_parser("tag", help="Pages carrying every given tag")
    tag.add_argument("tags", nargs="+", metavar="tag")

    tags = sub.add_parser("tags", help="List distinct tags")
    tags.add_argument("filter", nargs="?", default="", help="Only tags containing this substring")
    return ap


def _setup_logging(verbose):
    # stdout carries the Alfred JSON, logs go to stderr.
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _use_utf8_stdout():
    # Alfred reads UTF-8 regardless of the process locale.
    reconfigure = getattr(sys.stdout, "reconfigure", None)
    if reconfigure is not None and (sys.stdout.encoding or "").lower() not in ("utf-8", "utf8"):
        reconfigure(encoding="utf-8")


def _run_async(awaitable):
    return asyncio.run(awaitable)


def cmd_build(config, args):
    pages = _run_async(LogseqClient(config).fetch_pages())
    store = PageStore.from_config(config)
    summary = store.build(pages)
    logger.info("Build complete: %d pages, %d tags -> %s", summary["pages"], summary["tags"], store.db_path)


def cmd_query(config, args):
    pages = PageStore.from_config(config).search_pages(args.text)
    print(render_items(make_output_items(pages, graph=config["graph"], scheme=config["scheme"])))


def cmd_tag(config, args):
    pages = PageStore.from_config(config).filter_pages_by_tags(args.tags)
    print(render_items(make_output_items(pages, graph=config["graph"], scheme=config["scheme"])))


def cmd_tags(config, args):
    tags = PageStore.from_config(config).list_tags(args.filter or None)
    print(render_items(make_tag_output_items(tags)))


COMMANDS = {
    "build": cmd_build,
    "query": cmd_query,
    "tag": cmd_tag,
    "tags": cmd_tags,
}


def main(argv=None):
    args = _build_parser().parse_args(argv)
    _setup_logging(args.verbose)
    _use_utf8_stdout()
    try:
        config = load_config()
        COMMANDS[args.command](config, args)
    except (LogseqSearchError, EmptyTagsError) as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    except UnicodeEncodeError as exc:
        logger.error("%s failed: cannot write output: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
