import os


def get_data_dir():
    # Alfred runs workflow scripts from the workflow folder, so the
    # current directory is the natural home for the index file.
    base = os.environ.get("LogseqDataDir") or os.getcwd()
    os.makedirs(base, exist_ok=True)
    return base


def get_db_path():
    return os.path.join(get_data_dir(), "pages.db")


def find_simple_extension(directory):
    # Same lookup as loading "./libsimple": the platform suffix is optional.
    for name in ("libsimple.so", "libsimple.dylib", "libsimple.dll", "simple.dll"):
        path = os.path.join(directory or os.getcwd(), name)
        if os.path.isfile(path):
            return path
    return ""
