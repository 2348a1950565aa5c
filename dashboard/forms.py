# dashboard/forms.py
from django import forms

from core.helpers import humanize, to_datetime_local
from utils.validators import format_json, parse_json_object

# Input kinds for generated row forms
ACCOUNT = "account"
JSON = "json"
CHOICE = "choice"
CHECKBOX = "checkbox"
NUMBER = "number"
DATETIME = "datetime"
TEXT = "text"


def column_input_kind(column, relation, sample_value=None, has_accounts=False):
    """Pick the widget for one column from the relation's capabilities and the current value."""
    if column in relation.foreign_key_fields and has_accounts:
        return ACCOUNT
    if column in relation.json_fields:
        return JSON
    if column in relation.enumerated_fields:
        return CHOICE
    if isinstance(sample_value, bool):
        return CHECKBOX
    if isinstance(sample_value, (int, float)) or column in relation.numeric_fields:
        return NUMBER
    if column.endswith("_at") or column.endswith("_date"):
        return DATETIME
    return TEXT


def row_form_initial(relation, columns, row=None, prefill=None):
    """
    Initial values for the row form.
    Edit mode (row given): stored values, JSON pretty-printed, timestamps for datetime-local.
    Add mode: blanks, then prefill (e.g. user_id from a placeholder row), then JSON templates.
    """
    if row is not None:
        initial = {}
        for col in columns:
            value = row.get(col)
            if col in relation.json_fields:
                initial[col] = format_json(value)
            elif isinstance(value, bool):
                initial[col] = value
            elif col.endswith("_at") or col.endswith("_date"):
                initial[col] = to_datetime_local(value)
            else:
                initial[col] = "" if value is None else value
        return initial

    initial = {col: "" for col in columns}
    initial.update({k: v for k, v in (prefill or {}).items() if k in columns})
    for col, template in relation.json_templates.items():
        if col in columns and not initial.get(col):
            initial[col] = template
    return initial


# -----------------------------
# Row form (generated from the column list)
# -----------------------------
class RowForm(forms.Form):
    def __init__(self, *args, relation, columns, accounts=(), sample_row=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.relation = relation
        self.columns = list(columns)
        sample_row = sample_row or {}
        has_accounts = len(accounts) > 0

        for col in self.columns:
            kind = column_input_kind(col, relation, sample_row.get(col), has_accounts)
            field = self._build_field(col, kind, accounts)
            field.widget.attrs.setdefault("class", "form-control")
            field.input_kind = kind
            self.fields[col] = field

    def _build_field(self, col, kind, accounts):
        label = humanize(col)
        if kind == ACCOUNT:
            choices = [("", "Select a user...")] + [(a.id, a.email or a.id) for a in accounts]
            current = self.initial.get(col) or self.data.get(col)
            if current and current not in {a.id for a in accounts}:
                choices.append((current, current))
            return forms.ChoiceField(label="User", choices=choices, required=False)
        if kind == JSON:
            return forms.CharField(
                label=f"{label.capitalize()} (JSON)",
                required=False,
                widget=forms.Textarea(attrs={
                    "rows": 6,
                    "placeholder": 'e.g., { "source": "campaign_x", "value": 50 }',
                }),
            )
        if kind == CHOICE:
            options = list(self.relation.enumerated_fields[col])
            current = self.initial.get(col)
            if current and current not in options:
                options.append(current)
            choices = [("", f"Select a {label}...")] + [(o, o.capitalize()) for o in options]
            return forms.ChoiceField(label=label, choices=choices, required=False)
        if kind == CHECKBOX:
            return forms.BooleanField(label=label, required=False)
        if kind == NUMBER:
            return forms.CharField(label=label, required=False, widget=forms.NumberInput(attrs={"step": "any"}))
        if kind == DATETIME:
            return forms.CharField(
                label=label, required=False,
                widget=forms.DateTimeInput(attrs={"type": "datetime-local"}),
            )
        return forms.CharField(label=label, required=False)

    def clean(self):
        cleaned_data = super().clean()
        for col in self.relation.json_fields:
            if col not in self.fields:
                continue
            value = cleaned_data.get(col)
            if value is None or not str(value).strip():
                cleaned_data[col] = None
                continue
            try:
                cleaned_data[col] = parse_json_object(value, label=humanize(col).capitalize())
            except ValueError as e:
                self.add_error(col, str(e))
        return cleaned_data

    def payload(self) -> dict:
        return {col: self.cleaned_data.get(col) for col in self.columns}


# -----------------------------
# Identity-store accounts
# -----------------------------
class MetadataField(forms.CharField):
    """Textarea holding a JSON object; cleans to a dict."""

    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("widget", forms.Textarea(attrs={
            "rows": 6,
            "class": "form-control",
            "placeholder": 'e.g., { "plan": "pro", "is_active": true }',
        }))
        super().__init__(**kwargs)

    def clean(self, value):
        value = super().clean(value)
        try:
            return parse_json_object(value or "{}")
        except ValueError as e:
            raise forms.ValidationError(str(e))


class AccountCreateForm(forms.Form):
    email = forms.EmailField(
        label="Email Address",
        error_messages={"required": "Email and password are required."},
        widget=forms.EmailInput(attrs={"class": "form-control"}),
    )
    password = forms.CharField(
        label="Password",
        error_messages={"required": "Email and password are required."},
        widget=forms.PasswordInput(attrs={"class": "form-control", "placeholder": "Enter a strong password"}),
    )
    metadata = MetadataField(label="User Metadata (JSON)", initial="{}")


class AccountMetadataForm(forms.Form):
    metadata = MetadataField(label="User Metadata (JSON)")

    @classmethod
    def for_account(cls, account, data=None):
        return cls(data, initial={"metadata": format_json(account.metadata or {})})
