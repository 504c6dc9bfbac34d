"""
catalog/store.py -- SQLAlchemy-backed persistence layer for the book catalog.

Uses SQLAlchemy Core (not ORM) so the domain dataclasses in catalog/models.py
remain the authoritative domain representation. Relationships that an ORM
would hide are explicit here:

  books.author_id      -> authors.id   (many-to-one)
  books.created_by_id  -> users.id     (owner, never updated)
  table_of_contents    -> books.id     (ordered by position)

Cascades are explicit delete sequences run inside one transaction, so a
failure half-way leaves nothing behind.

Pattern: Repository + Data Mapper. CatalogStore is the repository; the
_row_to_* functions are the mappers. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = CatalogStore("sqlite:///bookman.db")
    book_id = store.create_book(book, author, ["Intro", "Chapter 1"], created_by_id=user.id)
    store.update_book(book_id, volume=5)
    store.delete_book(book_id)
    store.close()
"""

from typing import Optional

from sqlalchemy import Column, ForeignKey, Integer, String, Table, Text, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError

from auth.store import users
from catalog.models import Author, Book
from core.db import create_db_engine, metadata, now_iso
from core.errors import Conflict, NotFound

# Columns update_book() accepts as keyword arguments. Checked before any SQL
# so a typo in a caller fails loudly instead of being silently dropped.
_BOOK_FIELDS = {"name", "category", "volume", "published_at", "summary", "publisher"}
_AUTHOR_FIELDS = {"first_name", "last_name", "birthday", "nationality"}

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_authors = Table(
    "authors",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("first_name", String(255), nullable=False, server_default=""),
    Column("last_name", String(255), nullable=False, server_default=""),
    Column("birthday", String(32), nullable=False, server_default=""),
    Column("nationality", String(255), nullable=False, server_default=""),
)

_books = Table(
    "books",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False, unique=True),
    Column("author_id", Integer, ForeignKey("authors.id"), nullable=False),
    Column("created_by_id", Integer, ForeignKey("users.id"), nullable=False),
    Column("category", String(255), nullable=False, server_default=""),
    Column("volume", Integer, nullable=False, server_default="1"),
    Column("published_at", String(32), nullable=False, server_default=""),
    Column("summary", Text, nullable=False, server_default=""),
    Column("publisher", String(255), nullable=False, server_default=""),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_contents = Table(
    "table_of_contents",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("book_id", Integer, ForeignKey("books.id"), nullable=False, index=True),
    Column("position", Integer, nullable=False),
    Column("item", Text, nullable=False),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _insert_contents(conn: Connection, book_id: int, items: list[str]) -> None:
    if not items:
        return
    conn.execute(
        _contents.insert(),
        [{"book_id": book_id, "position": i, "item": item} for i, item in enumerate(items)],
    )


def _name_taken(conn: Connection, name: str, exclude_id: Optional[int] = None) -> bool:
    query = select(_books.c.id).where(_books.c.name == name)
    if exclude_id is not None:
        query = query.where(_books.c.id != exclude_id)
    return conn.execute(query).first() is not None


def _present(fields: dict, allowed: set[str], kind: str) -> dict:
    """Drop unset (None) values and reject unknown keys."""
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown {kind} fields: {sorted(unknown)!r}")
    return {k: v for k, v in fields.items() if v is not None}


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CatalogStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = create_db_engine(db_url)

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------

    def create_book(self, book: Book, author: Author, table_of_contents: list[str], created_by_id: int) -> int:
        """Insert a book with its author and contents; return the new book ID.

        Raises Conflict if a book with the same name already exists.
        """
        now = now_iso()
        with self.engine.connect() as conn:
            if _name_taken(conn, book.name):
                raise Conflict("this book is already added")
            author_id = conn.execute(
                _authors.insert().values(
                    first_name=author.first_name,
                    last_name=author.last_name,
                    birthday=author.birthday,
                    nationality=author.nationality,
                )
            ).inserted_primary_key[0]
            try:
                book_id = conn.execute(
                    _books.insert().values(
                        name=book.name,
                        author_id=author_id,
                        created_by_id=created_by_id,
                        category=book.category,
                        volume=book.volume,
                        published_at=book.published_at,
                        summary=book.summary,
                        publisher=book.publisher,
                        created_at=now,
                        updated_at=now,
                    )
                ).inserted_primary_key[0]
            except IntegrityError as exc:
                # Lost a race with a concurrent insert of the same name.
                raise Conflict("this book is already added") from exc
            _insert_contents(conn, book_id, table_of_contents)
            conn.commit()
            return book_id

    def get_book(self, book_id: int) -> Book:
        """Fetch a single book by ID. Raises NotFound if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_books.select().where(_books.c.id == book_id)).fetchone()
        if row is None:
            raise NotFound(f"book {book_id} not found")
        return _row_to_book(row)

    def list_books(self) -> list[Book]:
        """Return every book, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_books.select().order_by(_books.c.id)).fetchall()
        return [_row_to_book(r) for r in rows]

    def update_book(
        self,
        book_id: int,
        *,
        author: Optional[dict] = None,
        table_of_contents: Optional[list[str]] = None,
        **fields,
    ) -> Book:
        """Apply a partial update and return the book as stored afterwards.

        Only keys with a non-None value overwrite the stored column. Accepted
        book fields: name, category, volume, published_at, summary, publisher.
        author -- dict of first_name/last_name/birthday/nationality; present
            values are written to the linked author row in place.
        table_of_contents -- when not None, replaces the whole list.

        Raises NotFound if book_id does not exist, Conflict when renaming onto
        another book's name.
        """
        book_fields = _present(fields, _BOOK_FIELDS, "book")
        author_fields = _present(author or {}, _AUTHOR_FIELDS, "author")
        with self.engine.connect() as conn:
            row = conn.execute(_books.select().where(_books.c.id == book_id)).fetchone()
            if row is None:
                raise NotFound(f"book {book_id} not found")
            if "name" in book_fields and _name_taken(conn, book_fields["name"], exclude_id=book_id):
                raise Conflict("this book is already added")
            try:
                conn.execute(
                    _books.update().where(_books.c.id == book_id).values(updated_at=now_iso(), **book_fields)
                )
            except IntegrityError as exc:
                raise Conflict("this book is already added") from exc
            if author_fields:
                conn.execute(_authors.update().where(_authors.c.id == row.author_id).values(**author_fields))
            if table_of_contents is not None:
                conn.execute(_contents.delete().where(_contents.c.book_id == book_id))
                _insert_contents(conn, book_id, table_of_contents)
            updated = conn.execute(_books.select().where(_books.c.id == book_id)).fetchone()
            conn.commit()
        return _row_to_book(updated)

    def delete_book(self, book_id: int) -> None:
        """Delete a book, its contents, and its author if no other book uses it.

        Raises NotFound if book_id does not exist.
        """
        with self.engine.connect() as conn:
            row = conn.execute(_books.select().where(_books.c.id == book_id)).fetchone()
            if row is None:
                raise NotFound(f"book {book_id} not found")
            conn.execute(_contents.delete().where(_contents.c.book_id == book_id))
            conn.execute(_books.delete().where(_books.c.id == book_id))
            shared = conn.execute(select(_books.c.id).where(_books.c.author_id == row.author_id).limit(1)).first()
            if shared is None:
                conn.execute(_authors.delete().where(_authors.c.id == row.author_id))
            conn.commit()

    # ------------------------------------------------------------------
    # Related rows
    # ------------------------------------------------------------------

    def get_author(self, author_id: int) -> Author:
        """Fetch an author by ID. Raises NotFound if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(_authors.select().where(_authors.c.id == author_id)).fetchone()
        if row is None:
            raise NotFound(f"author {author_id} not found")
        return _row_to_author(row)

    def get_contents(self, book_id: int) -> list[str]:
        """Return a book's table-of-contents entries in submitted order ([] if none)."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(_contents.c.item).where(_contents.c.book_id == book_id).order_by(_contents.c.position)
            ).fetchall()
        return [r.item for r in rows]

    def get_created_by_username(self, book_id: int) -> str:
        """Return the username of the user who created the book.

        Raises NotFound if the book does not exist.
        """
        with self.engine.connect() as conn:
            username = conn.execute(
                select(users.c.username)
                .select_from(_books.join(users, _books.c.created_by_id == users.c.id))
                .where(_books.c.id == book_id)
            ).scalar()
        if username is None:
            raise NotFound(f"book {book_id} not found")
        return username

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_book(row) -> Book:
    return Book(
        id=row.id,
        name=row.name,
        author_id=row.author_id,
        created_by_id=row.created_by_id,
        category=row.category,
        volume=row.volume,
        published_at=row.published_at,
        summary=row.summary,
        publisher=row.publisher,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_author(row) -> Author:
    return Author(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        birthday=row.birthday,
        nationality=row.nationality,
    )
