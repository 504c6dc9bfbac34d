"""
API request and response models for the Bookman REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two.

Separation of concerns: domain dataclasses = domain truth; api/ models = API contract.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from catalog.models import Author, Book

# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


# bcrypt refuses input longer than this many bytes.
MAX_PASSWORD_BYTES = 72


class SignupRequest(BaseModel):
    """Request body for POST /auth/signup.

    Values are stored exactly as submitted. Nothing is stripped, so the
    password hashed here is byte-for-byte the one LoginRequest later checks,
    and GET /profile echoes the profile fields unchanged.
    """

    username: str = Field(min_length=1, max_length=255)
    firstname: str = Field(default="", max_length=255)
    lastname: str = Field(default="", max_length=255)
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_BYTES)
    phone_number: str = Field(default="", max_length=32)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        """max_length counts characters; bcrypt's limit is in UTF-8 bytes."""
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded")
        return v


class LoginRequest(BaseModel):
    """Request body for POST /auth/login. Not stripped, same as SignupRequest."""

    username: str = Field(max_length=255)
    password: str = Field(max_length=255)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class ProfileResponse(BaseModel):
    """Response for GET /profile -- the fields submitted at signup, minus the password."""

    model_config = ConfigDict(frozen=True)

    username: str
    firstname: str
    lastname: str
    phone_number: str


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


# ---------------------------------------------------------------------------
# Books -- shared shapes
# ---------------------------------------------------------------------------


class AuthorPayload(BaseModel):
    """Author block embedded in every book payload."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(default="", max_length=255)
    last_name: str = Field(default="", max_length=255)
    birthday: str = Field(default="", max_length=32)
    nationality: str = Field(default="", max_length=255)

    def to_domain(self) -> Author:
        return Author(
            first_name=self.first_name,
            last_name=self.last_name,
            birthday=self.birthday,
            nationality=self.nationality,
        )


class BookCreate(BaseModel):
    """Request body for POST /books."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    author: AuthorPayload = Field(default_factory=AuthorPayload)
    category: str = Field(default="", max_length=255)
    volume: int = Field(default=1, ge=1)
    published_at: str = Field(default="", max_length=32)
    summary: str = Field(default="", max_length=5000)
    table_of_contents: list[str] = Field(default_factory=list)
    publisher: str = Field(default="", max_length=255)

    def to_domain(self) -> Book:
        return Book(
            name=self.name,
            category=self.category,
            volume=self.volume,
            published_at=self.published_at,
            summary=self.summary,
            publisher=self.publisher,
        )


class AuthorPatch(BaseModel):
    """Author fields for PATCH /books/{id}. Omitted or null = leave unchanged."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: Optional[str] = Field(default=None, max_length=255)
    last_name: Optional[str] = Field(default=None, max_length=255)
    birthday: Optional[str] = Field(default=None, max_length=32)
    nationality: Optional[str] = Field(default=None, max_length=255)


class BookPatch(BaseModel):
    """Request body for PATCH /books/{id}.

    Every field is optional. Omitted or null fields keep their stored value.
    A supplied value always overwrites, so an empty string clears category,
    published_at, summary, publisher, or any author field. name and volume
    can not be cleared: an empty name or a volume below 1 is a 400.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    author: Optional[AuthorPatch] = None
    category: Optional[str] = Field(default=None, max_length=255)
    volume: Optional[int] = Field(default=None, ge=1)
    published_at: Optional[str] = Field(default=None, max_length=32)
    summary: Optional[str] = Field(default=None, max_length=5000)
    table_of_contents: Optional[list[str]] = None
    publisher: Optional[str] = Field(default=None, max_length=255)


class BookResponse(BaseModel):
    """A book as returned by every book endpoint."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    author: AuthorPayload
    category: str
    volume: int
    published_at: str
    summary: str
    table_of_contents: list[str]
    publisher: str

    @classmethod
    def from_domain(cls, book: Book, author: Author, contents: list[str]) -> "BookResponse":
        """Build a BookResponse from the domain book plus its related rows."""
        return cls(
            id=book.id,
            name=book.name,
            author=AuthorPayload(
                first_name=author.first_name,
                last_name=author.last_name,
                birthday=author.birthday,
                nationality=author.nationality,
            ),
            category=book.category,
            volume=book.volume,
            published_at=book.published_at,
            summary=book.summary,
            table_of_contents=contents,
            publisher=book.publisher,
        )


class BookListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    books: list[BookResponse]


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
