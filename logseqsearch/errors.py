class LogseqSearchError(RuntimeError):
    """Base class for failures that end a command."""


class ConfigError(LogseqSearchError):
    pass


class TransportError(LogseqSearchError):
    pass


class DecodeError(LogseqSearchError):
    pass


class StorageError(LogseqSearchError):
    pass


class EmptyTagsError(ValueError):
    pass
