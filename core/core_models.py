# core/core_models.py
from dataclasses import dataclass, field
from typing import Any, Optional


# -------------------------
# Account (identity store)
# -------------------------
@dataclass(frozen=True)
class Account:
    """
    Read-only snapshot of one identity-store user.
    Owned by Supabase Auth; we never persist it locally.
    """
    id: str
    email: Optional[str] = None
    metadata: dict = field(default_factory=dict)
    created_at: Optional[str] = None
    last_sign_in_at: Optional[str] = None

    @classmethod
    def from_user(cls, user: Any) -> "Account":
        """Build an Account from a supabase auth User (pydantic model) or a plain dict."""
        if hasattr(user, "model_dump"):
            data = user.model_dump(mode="json")
        elif isinstance(user, dict):
            data = user
        else:
            data = vars(user)

        metadata = data.get("user_metadata")
        if metadata is None:
            metadata = data.get("metadata") or {}
        return cls(
            id=str(data["id"]),
            email=data.get("email"),
            metadata=dict(metadata),
            created_at=_as_text(data.get("created_at")),
            last_sign_in_at=_as_text(data.get("last_sign_in_at")),
        )

    def as_row(self) -> dict:
        """Row shape used when the identity store itself is listed as a table."""
        return {
            "id": self.id,
            "email": self.email,
            "created_at": self.created_at,
            "last_sign_in_at": self.last_sign_in_at,
            "metadata": self.metadata,
        }

    def __str__(self):
        return self.email or self.id


def _as_text(value):
    if value is None:
        return None
    if hasattr(value, "isoformat"):
        return value.isoformat()
    return str(value)
