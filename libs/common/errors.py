"""Domain exceptions raised by the commerce engine."""

from typing import Any, Iterable, Optional


class CommerceError(Exception):
    """Base exception for commerce engine errors."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)


class ValidationError(CommerceError):
    """A mutation was rejected; nothing was persisted."""


class NotFoundError(CommerceError):
    """A referenced record does not exist or is not active."""


def check_update_fields(
    changes: dict[str, Any],
    updatable: Iterable[str],
    required: Iterable[str] = (),
) -> None:
    """Reject unknown fields and explicit nulls on non-nullable fields."""
    unknown = set(changes) - set(updatable)
    if unknown:
        raise ValidationError(
            f"Fields cannot be updated: {', '.join(sorted(unknown))}",
            field=sorted(unknown)[0],
        )
    for field in sorted(required):
        if field in changes and changes[field] is None:
            raise ValidationError(f"{field} cannot be null", field=field)
