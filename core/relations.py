# core/relations.py
from dataclasses import dataclass, field
from typing import Optional


class RelationNotFound(LookupError):
    """Raised when a relation name is not one of the tracked relations."""


# Columns generated by the database; never editable, never submitted
SYSTEM_COLUMNS = ("id", "inserted_at", "updated_at", "created_at")

USERS_RELATION = "users"


@dataclass(frozen=True)
class Relation:
    """
    Capability record for one tracked relation.
    Generic code (view builder, forms, save normalisation) asks the record
    instead of branching on the relation name.
    """
    name: str
    schema: str = "public"
    columns: tuple = ()
    denormalized: bool = False
    json_fields: tuple = ()
    json_templates: dict = field(default_factory=dict)
    enumerated_fields: dict = field(default_factory=dict)
    numeric_fields: tuple = ()
    foreign_key_fields: tuple = ()
    placeholder_action: Optional[str] = None

    @property
    def label(self) -> str:
        return self.name.replace("_", " ")

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.name}"

    @property
    def is_identity_store(self) -> bool:
        return self.schema == "auth" and self.name == USERS_RELATION

    @property
    def fallback_headers(self) -> list:
        return list(self.columns)

    def editable_columns(self, headers) -> list:
        """Form columns: the header list (or declared columns when empty) minus system columns."""
        source = list(headers) or list(self.columns)
        return [col for col in source if col not in SYSTEM_COLUMNS]


# -------------------------
# Registry
# -------------------------
RELATIONS = {
    "subscriptions": Relation(
        name="subscriptions",
        columns=("id", "user_id", "plan", "status", "start_date", "end_date", "created_at"),
        denormalized=True,
        enumerated_fields={
            "plan": ("bronze", "silver"),
            "status": ("active", "trialing", "past_due", "canceled", "unpaid"),
        },
        foreign_key_fields=("user_id",),
        placeholder_action="Add Subscription",
    ),
    "referral_usage": Relation(
        name="referral_usage",
        columns=("id", "referral_code", "user_id", "used_at", "details"),
        json_fields=("details",),
        json_templates={"details": '{\n  "source": "manual_entry"\n}'},
        foreign_key_fields=("user_id",),
    ),
    "user_progress": Relation(
        name="user_progress",
        columns=(
            "id", "user_id", "course_id", "lesson_id", "progress_percentage",
            "completed_at", "created_at", "updated_at",
        ),
        denormalized=True,
        numeric_fields=("progress_percentage",),
        foreign_key_fields=("user_id",),
        placeholder_action="Add Progress",
    ),
    USERS_RELATION: Relation(
        name=USERS_RELATION,
        schema="auth",
        columns=("id", "email", "created_at", "last_sign_in_at", "metadata"),
    ),
}


def get_relation(name: str) -> Relation:
    try:
        return RELATIONS[name]
    except KeyError:
        raise RelationNotFound(f"Unknown table: {name}") from None


def managed_relations() -> list:
    """Relations in sidebar order."""
    return list(RELATIONS.values())


def default_relation() -> Relation:
    return managed_relations()[0]
