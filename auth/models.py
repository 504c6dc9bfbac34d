"""
auth/models.py -- Domain dataclass for user accounts.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores and routes do
the work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered account.

    hashed_password is the bcrypt hash; the plaintext never reaches the store.
    username and phone_number are both unique at the database level.
    """

    username: str
    hashed_password: str
    firstname: str = ""
    lastname: str = ""
    phone_number: str = ""
    id: int | None = None
    created_at: str | None = None
