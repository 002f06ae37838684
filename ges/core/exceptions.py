__all__ = [
    "BaseError",
    "AggregationShapeError",
    "BadRequestError",
    "BatchTooLargeError",
    "EncodingError",
    "EngineError",
    "InvalidDestinationError",
    "NotFoundError",
    "NotSupportedError",
]


class BaseError(Exception):
    status_code: int


class BadRequestError(BaseError):
    status_code = 400


class AggregationShapeError(BadRequestError):
    pass


class InvalidDestinationError(BadRequestError):
    pass


class NotFoundError(BaseError):
    status_code = 404


class BatchTooLargeError(BadRequestError):
    status_code = 413

    limit: int
    size: int

    def __init__(self, message: str, limit: int = 0, size: int = 0):
        super().__init__(message)
        self.limit = limit
        self.size = size


class NotSupportedError(BaseError):
    status_code = 415


class EncodingError(BaseError):
    status_code = 422


class EngineError(BaseError):
    status_code = 502

    engine_status: int | None
    """Status reported by the engine, if any."""

    def __init__(self, message: str, engine_status: int | None = None):
        super().__init__(message)
        self.engine_status = engine_status
