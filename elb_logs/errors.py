class ElbLogsError(Exception):
    pass


class SetupError(ElbLogsError):
    """Fatal: raised before any object is fetched. The CLI exits non-zero."""


class BucketPathError(SetupError):
    pass


class ListingError(SetupError):
    def __init__(self, bucket: str, prefix: str, reason: str):
        super().__init__(f"listing s3://{bucket}/{prefix} failed: {reason}")
        self.bucket = bucket
        self.prefix = prefix


class ObjectError(ElbLogsError):
    """Per-object failure. The object contributes zero records, the run goes on."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason


class FetchError(ObjectError):
    def __init__(self, key: str, reason: str, code: str | None = None):
        super().__init__(key, reason)
        self.code = code


class DecodeError(ObjectError):
    pass
