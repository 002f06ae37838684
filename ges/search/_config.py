from __future__ import annotations

import os
from enum import Enum

from pydantic import field_validator

from ges.core import DataModel

__all__ = ["BatchPolicy", "SearchConfig"]


class BatchPolicy(str, Enum):
    """What to do with a batch larger than its ceiling."""

    CHUNK = "chunk"
    """Split into sub-batches and submit them in order."""

    REJECT = "reject"
    """Fail before any request is sent."""


class SearchConfig(DataModel):
    """Search config.

    Attributes:
        bulk_items_limit:
            Max items per create batch.
        bulk_update_items_limit:
            Max items per update, upsert or usave batch.
        save_policy:
            Batch policy of save.
        update_policy:
            Batch policy of usave, mupdate_by_id and mupsert_by_id.
        bulk_timeout:
            Server-side timeout of create batches.
        update_timeout:
            Server-side timeout of update batches.
        delete_timeout:
            Server-side timeout of delete by query.
        refresh:
            Refresh mode sent with writes.
    """

    bulk_items_limit: int = 1000
    bulk_update_items_limit: int = 500
    save_policy: BatchPolicy = BatchPolicy.CHUNK
    update_policy: BatchPolicy = BatchPolicy.REJECT
    bulk_timeout: str = "20s"
    update_timeout: str = "5s"
    delete_timeout: str = "20s"
    refresh: str = "true"

    @field_validator("bulk_items_limit", "bulk_update_items_limit")
    @classmethod
    def _check_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("limit must be positive")
        return v

    @classmethod
    def from_env(cls, prefix: str = "GES_") -> SearchConfig:
        """Builds a config from ``<prefix><FIELD>`` environment variables.

        Unset variables keep their defaults.
        """
        values = {}
        for name in cls.model_fields:
            value = os.getenv(f"{prefix}{name.upper()}")
            if value is not None:
                values[name] = value
        return cls.model_validate(values)
