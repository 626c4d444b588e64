# carts/models/owner.py

"""
CART OWNER

A cart belongs to exactly one of:
- UserOwner(user_id)      : an authenticated customer
- GuestOwner(session_id)  : an anonymous browser session

The Cart row stores this as two nullable columns guarded by a check constraint;
code outside the model only ever sees the union below.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class UserOwner:
    user_id: uuid.UUID

    def as_filter(self) -> dict:
        return {"user_id": self.user_id, "session_id__isnull": True}

    def as_fields(self) -> dict:
        return {"user_id": self.user_id, "session_id": None}


@dataclass(frozen=True)
class GuestOwner:
    session_id: str

    def __post_init__(self):
        if not (self.session_id or "").strip():
            raise ValueError("session_id is required for a guest cart")

    def as_filter(self) -> dict:
        return {"session_id": self.session_id, "user__isnull": True}

    def as_fields(self) -> dict:
        return {"user_id": None, "session_id": self.session_id}


CartOwner = Union[UserOwner, GuestOwner]
