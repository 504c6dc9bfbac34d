"""
api/routes/books.py -- Book catalog routes for the Bookman REST API.

Routes:
  GET    /books            -- list every book
  POST   /books            -- add a book owned by the caller
  GET    /books/{book_id}  -- one book
  PATCH  /books/{book_id}  -- partial update (owner only)
  DELETE /books/{book_id}  -- delete with contents (owner only)

Every route requires authentication. Successful responses use 202, matching
the status codes existing clients of this API already expect.

Ownership:
  _require_owner() reads the creator first, so a missing book surfaces as
  NotFound before any username comparison happens.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Path, Request

from api.models import BookCreate, BookListResponse, BookPatch, BookResponse, MessageResponse
from auth.dependencies import get_current_username
from auth.store import UserStore
from catalog.models import Book
from catalog.store import CatalogStore
from core.errors import InternalError, NotFound, Unauthorized

logger = logging.getLogger("bookman.api.books")

router = APIRouter(dependencies=[Depends(get_current_username)])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _book_response(catalog: CatalogStore, book: Book) -> BookResponse:
    """Join a book with its author and contents rows."""
    try:
        author = catalog.get_author(book.author_id)
    except NotFound as exc:
        raise InternalError(f"can not retrieve author of book {book.name!r}") from exc
    return BookResponse.from_domain(book, author, catalog.get_contents(book.id))


def _require_owner(catalog: CatalogStore, book_id: int, username: str) -> None:
    if catalog.get_created_by_username(book_id) != username:
        raise Unauthorized("you didn't add the book with given ID")


# ---------------------------------------------------------------------------
# Collection
# ---------------------------------------------------------------------------


@router.get("/books", response_model=BookListResponse, status_code=202)
def list_books(request: Request) -> BookListResponse:
    """Return every book in the catalog with its author and contents."""
    catalog: CatalogStore = request.app.state.catalog
    return BookListResponse(books=[_book_response(catalog, b) for b in catalog.list_books()])


@router.post("/books", response_model=MessageResponse, status_code=202)
def add_book(
    request: Request,
    body: BookCreate,
    username: str = Depends(get_current_username),
) -> MessageResponse:
    """Add a book. The caller becomes its permanent owner."""
    catalog: CatalogStore = request.app.state.catalog
    user_store: UserStore = request.app.state.user_store
    try:
        user = user_store.get_user_by_username(username)
    except NotFound as exc:
        raise InternalError("can not retrieve the user of this token") from exc

    book_id = catalog.create_book(
        body.to_domain(),
        body.author.to_domain(),
        body.table_of_contents,
        created_by_id=user.id,
    )
    logger.info("User %s added book %d (%s)", username, book_id, body.name)
    return MessageResponse(message="book has been added successfully")


# ---------------------------------------------------------------------------
# Single book
# ---------------------------------------------------------------------------


@router.get("/books/{book_id}", response_model=BookResponse, status_code=202)
def get_book(request: Request, book_id: int = Path(gt=0)) -> BookResponse:
    """Return one book with its author and contents."""
    catalog: CatalogStore = request.app.state.catalog
    return _book_response(catalog, catalog.get_book(book_id))


@router.patch("/books/{book_id}", response_model=BookResponse, status_code=202)
def update_book(
    request: Request,
    body: BookPatch,
    book_id: int = Path(gt=0),
    username: str = Depends(get_current_username),
) -> BookResponse:
    """Partially update a book the caller created; return the stored result.

    Omitted fields are left alone. A supplied table_of_contents replaces the
    whole list; supplied author fields update the linked author in place.
    """
    catalog: CatalogStore = request.app.state.catalog
    _require_owner(catalog, book_id, username)

    updated = catalog.update_book(
        book_id,
        author=body.author.model_dump() if body.author is not None else None,
        table_of_contents=body.table_of_contents,
        **body.model_dump(exclude={"author", "table_of_contents"}),
    )
    logger.info("User %s updated book %d", username, book_id)
    return _book_response(catalog, updated)


@router.delete("/books/{book_id}", response_model=MessageResponse, status_code=202)
def delete_book(
    request: Request,
    book_id: int = Path(gt=0),
    username: str = Depends(get_current_username),
) -> MessageResponse:
    """Delete a book the caller created, together with its contents."""
    catalog: CatalogStore = request.app.state.catalog
    _require_owner(catalog, book_id, username)
    catalog.delete_book(book_id)
    logger.info("User %s deleted book %d", username, book_id)
    return MessageResponse(message="book has been deleted successfully")
