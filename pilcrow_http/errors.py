class PilcrowError(Exception):
    pass


class BodyParseError(PilcrowError, ValueError):
    """Request body is not valid JSON."""


class HeadAlreadySentError(PilcrowError, RuntimeError):
    """Status line and headers were already flushed for this response."""


class ConfigError(PilcrowError, ValueError):
    pass
