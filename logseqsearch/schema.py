SCHEMA_SQL = r"""
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS meta (
  key TEXT PRIMARY KEY,
  value TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS pages (
  id INTEGER NOT NULL PRIMARY KEY,
  created_at INTEGER,
  updated_at INTEGER,
  uuid TEXT,
  journal BOOLEAN,
  original_name TEXT,
  properties TEXT
);

CREATE TABLE IF NOT EXISTS tags (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  page_id INTEGER,
  tag TEXT,
  FOREIGN KEY (page_id) REFERENCES pages(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_tags_page_id ON tags(page_id);
CREATE INDEX IF NOT EXISTS idx_tags_tag ON tags(tag);
"""

# Only the display name is indexed; rowid is the page id.
FTS_SQL = r"""
CREATE VIRTUAL TABLE IF NOT EXISTS pages_fts USING fts5(
  original_name,
  tokenize = '{tokenizer}'
);
"""
