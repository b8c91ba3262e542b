"""Error taxonomy shared by the persistence layer and its callers.

Each error carries a machine-readable ``error_kind`` and a short message that
is safe to show to API clients. Internal detail (driver messages, paths) goes
into ``detail`` and is only ever logged.
"""

from __future__ import annotations


class PersistenceError(Exception):
    """Base class for every error raised by repositories and stores."""

    error_kind = "internal"
    default_message = "Lỗi máy chủ"

    def __init__(self, message: str | None = None, *, detail: str | None = None):
        self.message = message or self.default_message
        self.detail = detail or self.message
        super().__init__(self.detail)


class ValidationError(PersistenceError):
    """Caller data failed a required-field, type or shape check."""

    error_kind = "validation"
    default_message = "Dữ liệu không hợp lệ"

    def __init__(self, message: str | None = None, *, field: str | None = None, detail: str | None = None):
        super().__init__(message, detail=detail)
        self.field = field


class NotFoundError(PersistenceError):
    error_kind = "not_found"
    default_message = "Không tìm thấy dữ liệu"


class ConflictError(PersistenceError):
    """A record with the same natural key already exists."""

    error_kind = "conflict"
    default_message = "Dữ liệu đã tồn tại"


class StoreUnavailable(PersistenceError):
    """The backing store cannot be reached or refused the operation."""

    error_kind = "store_unavailable"
    default_message = "Dịch vụ tạm thời không khả dụng"


class MigrationError(PersistenceError):
    """A schema transform could not be applied; the collection stays degraded."""

    error_kind = "migration"
    default_message = "Dịch vụ tạm thời không khả dụng"
