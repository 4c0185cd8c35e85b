class WhaleGraphError(Exception):
    pass


class ConfigError(WhaleGraphError):
    pass


class DataSourceError(WhaleGraphError):
    pass


class RateLimitError(DataSourceError):
    pass


class MalformedResponseError(DataSourceError):
    pass
