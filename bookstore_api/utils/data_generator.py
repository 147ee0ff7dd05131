"""Generates Book and Author values for positive and negative API tests.

Realistic values come from Faker. Edge-case variants are derived from a
valid random instance with ``with_changes`` so only the field under test
is unusual.

Generated identifiers are unique for the life of the process: every id is
recorded in a shared, lock-guarded registry and a collision draws again.
"""

import logging
import random
import threading
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Callable, Optional

from faker import Faker

from bookstore_api.domain.models.common import ResourceId
from bookstore_api.domain.models.resources import Author, Book, R

logger = logging.getLogger(__name__)

BOOK_ID_RANGE = (1, 100_000)
AUTHOR_ID_RANGE = (1_000, 100_000)
MAX_RANDOM_DRAWS = 100

SPECIAL_CHARACTERS_TITLE = "!@#$%^&*()_+{}|:<>?~`-=[]\\;',./"
UNICODE_TITLE = "Türkçe Kitap öçşğüıÖÇŞĞÜİ 测试书籍"
SQL_INJECTION_PAYLOAD = "'; DROP TABLE Books; --"
XSS_PAYLOAD = "<script>alert('XSS')</script>"
INVALID_DATE_FORMAT = "31-12-2023"  # DD-MM-YYYY
LARGE_PAGE_COUNT = 2_147_483_647

_faker = Faker()
_random = random.Random()


class IdRangeExhaustedError(RuntimeError):
    """Raised when every id in the requested range has been handed out."""


class UniqueIdRegistry:
    """Thread-safe record of identifiers already handed out.

    Holds at most ``capacity`` ids; past that the oldest are forgotten and
    may be issued again. Random draws are retried ``MAX_RANDOM_DRAWS`` times
    before falling back to a scan for the next free id, so a nearly full
    range still terminates.
    """

    def __init__(self, capacity: int = BOOK_ID_RANGE[1]):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._used: "OrderedDict[int, None]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._used)

    def __contains__(self, value: object) -> bool:
        return value in self._used

    def claim(self, low: int, high: int, draw: Optional[Callable[[int, int], int]] = None) -> int:
        """Returns an unused id in ``[low, high]`` and records it.

        Raises:
            IdRangeExhaustedError: If every id in the range is taken.
        """
        draw = draw or _random.randint
        with self._lock:
            for _ in range(MAX_RANDOM_DRAWS):
                candidate = draw(low, high)
                if candidate not in self._used:
                    return self._record(candidate)

            logger.warning(f"Id range [{low}, {high}] is crowded, scanning for a free id")
            start = draw(low, high)
            span = high - low + 1
            for offset in range(span):
                candidate = low + (start - low + offset) % span
                if candidate not in self._used:
                    return self._record(candidate)
        raise IdRangeExhaustedError(f"All ids in [{low}, {high}] have been used")

    def _record(self, value: int) -> int:
        self._used[value] = None
        if len(self._used) > self.capacity:
            self._used.popitem(last=False)
        return value

    def clear(self) -> None:
        with self._lock:
            self._used.clear()


_used_ids = UniqueIdRegistry()


def seed(value: int) -> None:
    """Makes generated data reproducible."""
    Faker.seed(value)
    _random.seed(value)


def reset_used_ids() -> None:
    """Forgets every id handed out so far."""
    _used_ids.clear()


def generate_unique_book_id() -> ResourceId:
    """Id in ``BOOK_ID_RANGE`` not handed out before in this process.

    Raises:
        IdRangeExhaustedError: If the range has no free id left.
    """
    return ResourceId(_used_ids.claim(*BOOK_ID_RANGE))


def generate_unique_author_id() -> ResourceId:
    """Same as ``generate_unique_book_id`` over ``AUTHOR_ID_RANGE``."""
    return ResourceId(_used_ids.claim(*AUTHOR_ID_RANGE))


# --- Dates ---

def generate_random_date() -> str:
    """ISO-8601 date-time within the last ten years."""
    moment = datetime.now() - timedelta(days=_random.randint(0, 365 * 10))
    return moment.isoformat(timespec="seconds")


def generate_future_date(years_in_future: int) -> str:
    """Today's date-time moved ``years_in_future`` years ahead, ISO-8601."""
    now = datetime.now()
    try:
        moment = now.replace(year=now.year + years_in_future)
    except ValueError:
        # Feb 29 in a non-leap target year
        moment = now.replace(year=now.year + years_in_future, day=28)
    return moment.isoformat(timespec="seconds")


# --- Books ---

def generate_random_book() -> Book:
    """A valid book with every field filled in.

    Returns:
        Book: Unique id, Faker text, 50 to 1000 pages and a publish date
        within the last ten years.
    """
    return Book(
        id=generate_unique_book_id(),
        title=_faker.catch_phrase(),
        description=_faker.sentence(nb_words=15),
        page_count=_random.randint(50, 1000),
        excerpt=_faker.paragraph(),
        publish_date=generate_random_date(),
    )


def generate_minimal_book() -> Book:
    """Only the fields the API is known to require."""
    return Book.minimal()


def generate_book_with_all_null_fields() -> Book:
    """Every field, id included, serialized as JSON null."""
    return Book()


def _with_null_field(valid: R, field_name: str) -> R:
    attribute = valid.field_names().get(field_name.lower())
    if attribute is None:
        logger.warning(f"Unknown {type(valid).__name__} field name: {field_name}")
        return valid
    return valid.with_changes(**{attribute: None})


def generate_book_with_null_field(field_name: str) -> Book:
    """Random valid book with one field nulled.

    Accepts attribute or wire names in any case (``page_count``, ``pageCount``,
    ``pagecount``). An unknown name logs a warning and returns the valid book.
    """
    return _with_null_field(generate_random_book(), field_name)


def generate_book_with_empty_fields() -> Book:
    """Empty strings and a zero page count under a unique id."""
    return Book(
        id=generate_unique_book_id(),
        title="",
        description="",
        page_count=0,
        excerpt="",
        publish_date="",
    )


def generate_book_with_page_count(page_count: int) -> Book:
    """Random valid book with the given page count.

    Args:
        page_count: Used as-is; negative and oversized values are not clamped.

    Returns:
        Book: The book, otherwise valid.
    """
    return generate_random_book().with_changes(page_count=page_count)


def generate_book_with_negative_page_count() -> Book:
    return generate_book_with_page_count(-_random.randint(1, 100))


def generate_book_with_zero_page_count() -> Book:
    return generate_book_with_page_count(0)


def generate_book_with_large_page_count() -> Book:
    """Page count at the 32-bit signed maximum."""
    return generate_book_with_page_count(LARGE_PAGE_COUNT)


def generate_book_with_long_title(length: int) -> Book:
    """Random valid book whose title is exactly ``length`` characters.

    Args:
        length: Title length. Zero gives an empty title.

    Returns:
        Book: The book, otherwise valid.
    """
    return generate_random_book().with_changes(
        title=_faker.pystr(min_chars=length, max_chars=length)
    )


def generate_book_with_special_characters() -> Book:
    return generate_random_book().with_changes(title=SPECIAL_CHARACTERS_TITLE)


def generate_book_with_unicode_characters() -> Book:
    return generate_random_book().with_changes(title=UNICODE_TITLE)


def generate_book_with_future_publish_date(years_in_future: int = 10) -> Book:
    """Random valid book published ``years_in_future`` years from now."""
    return generate_random_book().with_changes(
        publish_date=generate_future_date(years_in_future)
    )


def generate_book_with_invalid_date_format() -> Book:
    """Publish date in DD-MM-YYYY instead of ISO-8601."""
    return generate_random_book().with_changes(publish_date=INVALID_DATE_FORMAT)


def generate_book_with_sql_injection_payload() -> Book:
    return generate_random_book().with_changes(description=SQL_INJECTION_PAYLOAD)


def generate_book_with_xss_payload() -> Book:
    return generate_random_book().with_changes(title=XSS_PAYLOAD)


# --- Authors ---

def generate_random_author() -> Author:
    """A valid author with a unique id and Faker names.

    The book reference is random and not checked against any stored book;
    use ``generate_author_for_book`` to point at a real one.
    """
    return Author(
        id=generate_unique_author_id(),
        id_book=_random.randint(*AUTHOR_ID_RANGE),
        first_name=_faker.first_name(),
        last_name=_faker.last_name(),
    )


def generate_minimal_author() -> Author:
    """Ids only, both in 0..9; names left null."""
    return Author.minimal(author_id=_random.randint(0, 9), book_id=_random.randint(0, 9))


def generate_author_with_null_field(field_name: str) -> Author:
    """Random valid author with one field nulled; unknown names are tolerated."""
    return _with_null_field(generate_random_author(), field_name)


def generate_author_with_empty_names() -> Author:
    return generate_random_author().with_changes(first_name="", last_name="")


def generate_author_with_long_name(length: int) -> Author:
    """Random valid author whose first name is exactly ``length`` characters."""
    return generate_random_author().with_changes(
        first_name=_faker.pystr(min_chars=length, max_chars=length)
    )


def generate_author_with_unicode_name() -> Author:
    return generate_random_author().with_changes(first_name="Çağrı", last_name="测试")


def generate_author_with_xss_payload() -> Author:
    return generate_random_author().with_changes(first_name=XSS_PAYLOAD)


def generate_author_for_book(book_id: ResourceId) -> Author:
    """Random valid author referencing an existing book.

    Args:
        book_id: Id of the book, usually taken from a create response.

    Returns:
        Author: The author with ``id_book`` set to ``book_id``.
    """
    return generate_random_author().with_changes(id_book=book_id)

