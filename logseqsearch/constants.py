APP_NAME = "LogseqSearch"
SCHEMA_VERSION = "1"

DEFAULT_API_URL = "http://127.0.0.1:12315/api"
GET_ALL_PAGES_METHOD = "logseq.Editor.getAllPages"

DEFAULT_GRAPH = "Logseq"
DEFAULT_SCHEME = "logseq"
DEFAULT_ICON = "icon.png"
