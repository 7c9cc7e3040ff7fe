import json
import logging
import os
import sqlite3

logger = logging.getLogger("LogseqSearch")

from .constants import SCHEMA_VERSION
from .errors import DecodeError, EmptyTagsError, StorageError
from .paths import find_simple_extension, get_db_path
from .schema import FTS_SQL, SCHEMA_SQL
from .utils import extract_tags, json_dumps, now_iso

_PAGE_FIELDS = (
    "pages.id, pages.created_at, pages.updated_at, pages.uuid, "
    "pages.journal, pages.original_name, pages.properties"
)


class PageStore:
    """SQLite mirror of a Logseq graph's page list.

    Each public method opens its own connection and closes it before
    returning. The file is only ever rebuilt from scratch by ``build``.
    """

    def __init__(self, db_path=None, extension_path="", load_extension=None):
        self.db_path = db_path or get_db_path()
        self.extension_path = extension_path or ""
        if load_extension is None:
            load_extension = bool(self.extension_path)
        self.load_extension = bool(load_extension)

    @classmethod
    def from_config(cls, config):
        db_path = get_db_path()
        extension_path = config.get("extension_path") or find_simple_extension(os.path.dirname(db_path))
        return cls(db_path=db_path, extension_path=extension_path)

    @property
    def tokenizer(self):
        # libsimple registers the CJK-aware "simple" tokenizer; trigram is
        # SQLite's built-in substring tokenizer.
        return "simple" if self.load_extension else "trigram"

    def _connect(self):
        parent = os.path.dirname(self.db_path)
        try:
            if parent:
                os.makedirs(parent, exist_ok=True)
            conn = sqlite3.connect(self.db_path)
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Error opening the database {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            if self.load_extension:
                conn.enable_load_extension(True)
                try:
                    conn.load_extension(self.extension_path)
                finally:
                    conn.enable_load_extension(False)
        except (AttributeError, sqlite3.Error) as exc:
            conn.close()
            raise StorageError(f"Error loading SQLite extension {self.extension_path!r}: {exc}") from exc
        return conn

    def _remove_db_files(self):
        for suffix in ("", "-wal", "-shm", "-journal"):
            path = self.db_path + suffix
            if not os.path.exists(path):
                continue
            try:
                os.remove(path)
            except OSError as exc:
                raise StorageError(f"Error removing {path}: {exc}") from exc
            logger.debug("removed %s", path)

    def reset(self):
        self._remove_db_files()
        conn = self._connect()
        try:
            conn.executescript(SCHEMA_SQL)
            conn.executescript(FTS_SQL.format(tokenizer=self.tokenizer))
            conn.executemany(
                "INSERT OR REPLACE INTO meta(key,value) VALUES(?, ?)",
                [("schema_version", SCHEMA_VERSION), ("tokenizer", self.tokenizer)],
            )
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Error creating schema: {exc}") from exc
        finally:
            conn.close()
        if not self.load_extension:
            logger.warning(
                "libsimple not found, using the trigram tokenizer; set LogseqSimpleExtension for CJK word search"
            )
        logger.info("Created empty store at %s (tokenizer=%s)", self.db_path, self.tokenizer)

    def index_pages(self, pages):
        page_count = 0
        tag_count = 0
        conn = self._connect()
        try:
            for page in pages:
                tag_count += self._index_page(conn, page)
                page_count += 1
        finally:
            conn.close()
        logger.info("Indexed %d pages, %d tags", page_count, tag_count)
        return {"pages": page_count, "tags": tag_count}

    def _index_page(self, conn, page):
        properties = page.get("properties")
        try:
            properties_json = json_dumps(properties)
        except (TypeError, ValueError) as exc:
            raise DecodeError(f"page {page.get('id')}: cannot serialize properties: {exc}") from exc
        tags = extract_tags(properties)

        try:
            with conn:
                cur = conn.execute(
                    """
                    INSERT OR REPLACE INTO pages(id,created_at,updated_at,uuid,journal,original_name,properties)
                    VALUES(?,?,?,?,?,?,?)
                    """,
                    (
                        page["id"],
                        page.get("created_at"),
                        page.get("updated_at"),
                        page.get("uuid"),
                        int(bool(page.get("journal"))),
                        page.get("original_name"),
                        properties_json,
                    ),
                )
                row_id = cur.lastrowid
                for tag in tags:
                    conn.execute("INSERT INTO tags(page_id,tag) VALUES(?,?)", (row_id, tag))
                conn.execute(
                    "INSERT OR REPLACE INTO pages_fts(rowid,original_name) VALUES(?,?)",
                    (row_id, page.get("original_name")),
                )
        except (KeyError, sqlite3.Error) as exc:
            raise StorageError(f"Error indexing page {page.get('id')}: {exc}") from exc
        return len(tags)

    def build(self, pages):
        self.reset()
        summary = self.index_pages(pages)
        self.set_meta("built_at", now_iso())
        return summary

    def set_meta(self, key, value):
        conn = self._connect()
        try:
            conn.execute("INSERT OR REPLACE INTO meta(key,value) VALUES(?,?)", (key, str(value)))
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Error writing meta {key}: {exc}") from exc
        finally:
            conn.close()

    def get_meta(self, key):
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM meta WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Error reading meta {key}: {exc}") from exc
        finally:
            conn.close()
        return row["value"] if row else None

    def search_pages(self, query):
        # The query string goes to FTS5 as-is, so its operators work.
        if self._should_prefer_like(query):
            return self._search_pages_like(query)
        sql = f"""
        SELECT {_PAGE_FIELDS},
          IFNULL((SELECT GROUP_CONCAT(tags.tag, ' ') FROM tags WHERE tags.page_id = pages.id), '') AS tags
        FROM pages_fts
        JOIN pages ON pages.id = pages_fts.rowid
        WHERE pages_fts MATCH ?
        ORDER BY pages_fts.rank, pages.id
        """
        rows = self._fetch(sql, (query,))
        logger.debug("search_pages q=%r rows=%d", query, len(rows))
        return [self._row_to_page(r) for r in rows]

    def _should_prefer_like(self, query):
        # trigram can only MATCH three or more characters.
        compact = "".join((query or "").split())
        if not compact or len(compact) >= 3:
            return False
        return self.get_meta("tokenizer") == "trigram"

    def _search_pages_like(self, query):
        escaped = query.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        sql = f"""
        SELECT {_PAGE_FIELDS},
          IFNULL((SELECT GROUP_CONCAT(tags.tag, ' ') FROM tags WHERE tags.page_id = pages.id), '') AS tags
        FROM pages_fts
        JOIN pages ON pages.id = pages_fts.rowid
        WHERE pages_fts.original_name LIKE ? ESCAPE '\\'
        ORDER BY pages.id
        """
        rows = self._fetch(sql, (f"%{escaped}%",))
        logger.debug("search_pages LIKE q=%r rows=%d", query, len(rows))
        return [self._row_to_page(r) for r in rows]

    def filter_pages_by_tags(self, tags):
        if isinstance(tags, str):
            tags = [tags]
        tags = list(tags or [])
        if not tags:
            raise EmptyTagsError("at least one tag is required")

        placeholders = ", ".join("?" for _ in tags)
        # Compared against the requested count as given, duplicates included.
        sql = f"""
        SELECT {_PAGE_FIELDS}, GROUP_CONCAT(tags.tag, ' ') AS tags
        FROM pages
        INNER JOIN tags ON pages.id = tags.page_id
        WHERE tags.tag IN ({placeholders})
        GROUP BY pages.id
        HAVING COUNT(DISTINCT tags.tag) = ?
        ORDER BY pages.id
        """
        params = tags + [len(tags)]
        logger.debug("sql=%s, args=%s", " ".join(sql.split()), params)
        rows = self._fetch(sql, params)
        return [self._row_to_page(r) for r in rows]

    def list_tags(self, tag_filter=None):
        if tag_filter:
            escaped = tag_filter.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
            rows = self._fetch(
                "SELECT DISTINCT tag FROM tags WHERE tag LIKE ? ESCAPE '\\' ORDER BY tag",
                (f"%{escaped}%",),
            )
        else:
            rows = self._fetch("SELECT DISTINCT tag FROM tags ORDER BY tag", ())
        return [r["tag"] for r in rows]

    def _fetch(self, sql, params):
        conn = self._connect()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"Query failed: {exc}") from exc
        finally:
            conn.close()

    @staticmethod
    def _loads_properties(raw, page_id):
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DecodeError(f"page {page_id}: stored properties are not valid JSON: {exc}") from exc
        return data if isinstance(data, dict) else None

    def _row_to_page(self, row):
        return {
            "id": row["id"],
            "created_at": row["created_at"],
            "updated_at": row["updated_at"],
            "uuid": row["uuid"],
            "journal": bool(row["journal"]),
            "original_name": row["original_name"],
            "properties": self._loads_properties(row["properties"], row["id"]),
            "tags": row["tags"] or "",
        }
