"""
catalog/models.py -- Domain dataclasses for the book catalog.

These are pure data containers with zero logic. Persistence, partial updates
and cascades live in catalog/store.py.

Separation of concerns: these dataclasses are the catalog's domain truth, just
as auth/models.py is the account domain's. The API contract lives separately
in api/models.py and route handlers map between the two.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Author:
    """The author a book is linked to (many books may point at one author row).

    id is None before the record is written to the database.
    """

    first_name: str = ""
    last_name: str = ""
    birthday: str = ""
    nationality: str = ""
    id: Optional[int] = None


@dataclass
class Book:
    """A catalog entry.

    author_id and created_by_id are set by the store on insert. created_by_id
    never changes: it is the owner used by the mutation ownership check.
    Table-of-contents entries live in their own table; fetch them with
    CatalogStore.get_contents().
    """

    name: str
    category: str = ""
    volume: int = 1
    published_at: str = ""  # free-form publication date, stored as given
    summary: str = ""
    publisher: str = ""
    id: Optional[int] = None
    author_id: Optional[int] = None
    created_by_id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""
