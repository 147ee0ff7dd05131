"""Domain models for the Bookstore resources.

Both records are immutable and every field is optional, so the same type
describes realistic data and deliberately broken payloads. Variations are
built with ``with_changes`` instead of mutating an instance.
"""

from dataclasses import dataclass, fields, replace
from typing import Any, ClassVar, Dict, Optional, Type, TypeVar, get_args, get_type_hints

R = TypeVar("R", bound="Resource")


def _value_type(annotation: Any) -> type:
    """Strips ``Optional[...]`` down to the concrete field type."""
    args = [arg for arg in get_args(annotation) if arg is not type(None)]
    return args[0] if args else annotation


def _matches(value: Any, expected: type) -> bool:
    if expected is int:
        return isinstance(value, int) and not isinstance(value, bool)
    return isinstance(value, expected)


@dataclass(frozen=True)
class Resource:
    """Base for JSON-mapped records.

    ``_json_names`` maps dataclass attribute names to wire (camelCase) keys.
    """

    _json_names: ClassVar[Dict[str, str]] = {}

    id: Optional[int] = None

    def with_changes(self: R, **overrides: Any) -> R:
        """Returns a copy with the given fields replaced."""
        return replace(self, **overrides)

    def to_payload(self) -> Dict[str, Any]:
        """Serializes to the wire shape. ``None`` fields are sent as JSON null."""
        return {
            self._json_names.get(f.name, f.name): getattr(self, f.name)
            for f in fields(self)
        }

    @classmethod
    def from_payload(cls: Type[R], payload: Dict[str, Any]) -> R:
        """Builds an instance from a decoded JSON object, ignoring unknown keys.

        Every present field must be null or match its declared type. Booleans
        are not accepted for integer fields.

        Raises:
            TypeError: If the payload is not a dict or a field has the wrong type.
        """
        if not isinstance(payload, dict):
            raise TypeError(
                f"{cls.__name__} payload must be a JSON object, got {type(payload).__name__}"
            )
        hints = get_type_hints(cls)
        kwargs = {}
        for f in fields(cls):
            key = cls._json_names.get(f.name, f.name)
            if key not in payload:
                continue
            value = payload[key]
            expected = _value_type(hints[f.name])
            if value is not None and not _matches(value, expected):
                raise TypeError(
                    f"{cls.__name__}.{key} must be {expected.__name__} or null, "
                    f"got {type(value).__name__} ({value!r})"
                )
            kwargs[f.name] = value
        return cls(**kwargs)

    @classmethod
    def field_names(cls) -> Dict[str, str]:
        """Maps lower-cased wire and attribute names to attribute names."""
        names = {}
        for f in fields(cls):
            names[f.name.lower()] = f.name
            names[cls._json_names.get(f.name, f.name).lower()] = f.name
        return names


@dataclass(frozen=True)
class Book(Resource):
    """A book as exposed by ``/Books``.

    ``publish_date`` is ISO-8601 date-time text; it is never parsed
    client-side so malformed dates can be sent on purpose.
    """

    _json_names: ClassVar[Dict[str, str]] = {
        "page_count": "pageCount",
        "publish_date": "publishDate",
    }

    title: Optional[str] = None
    description: Optional[str] = None
    page_count: Optional[int] = None
    excerpt: Optional[str] = None
    publish_date: Optional[str] = None

    @classmethod
    def sample(cls) -> "Book":
        return cls(
            title="Sample Book Title",
            description="This is a sample book description for testing purposes",
            page_count=250,
            excerpt="This is a sample excerpt from the book",
            publish_date="2024-01-01T00:00:00",
        )

    @classmethod
    def minimal(cls) -> "Book":
        return cls(title="Minimal Book", page_count=1)


@dataclass(frozen=True)
class Author(Resource):
    """An author as exposed by ``/Authors``.

    ``id_book`` references a Book but is not checked client-side.
    """

    _json_names: ClassVar[Dict[str, str]] = {
        "id_book": "idBook",
        "first_name": "firstName",
        "last_name": "lastName",
    }

    id_book: Optional[int] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @classmethod
    def minimal(cls, author_id: int = 1, book_id: int = 1) -> "Author":
        return cls(id=author_id, id_book=book_id)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def is_valid(self) -> bool:
        """True when both name parts are present and non-blank."""
        return bool(self.first_name and self.first_name.strip()) and bool(
            self.last_name and self.last_name.strip()
        )
