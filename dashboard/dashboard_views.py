# dashboard/dashboard_views.py
import logging

from django.http import Http404, HttpResponse
from django.shortcuts import redirect
from django.views.decorators.http import require_http_methods

from core import queries
from core.gateway import GatewayError
from core.helpers import build_table_rows, humanize
from core.relations import default_relation, get_relation
from utils.export_utils import export_table_view_excel

from .base_views import dashboard_view
from .forms import AccountCreateForm, AccountMetadataForm, RowForm, row_form_initial

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


def _table_redirect(relation_name):
    return redirect("dashboard:table", relation=relation_name)


@dashboard_view()
def index(request):
    return _table_redirect(default_relation().name)


# ===============================
# TABLE
# ===============================
@dashboard_view("dashboard/table.html")
def table_view(request, relation):
    """List one relation. A failed fetch shows a banner instead of rows."""
    relation = get_relation(relation)
    context = {
        "relation": relation,
        "headers": [],
        "header_labels": [],
        "table_rows": [],
        "error": None,
        "is_users_table": relation.is_identity_store,
    }

    try:
        view = queries.get_table_view(relation.name)
    except GatewayError as e:
        logger.error("Error fetching %s: %s", relation.qualified_name, e.message)
        context["error"] = f"Error fetching data: {e.message}"
        return context

    context.update({
        "headers": view.headers,
        "header_labels": [humanize(h) for h in view.headers],
        "table_rows": build_table_rows(view),
    })
    return context


@dashboard_view()
@require_http_methods(["GET"])
def export_table(request, relation):
    relation = get_relation(relation)
    try:
        view = queries.get_table_view(relation.name)
    except GatewayError as e:
        request.session["error_message"] = f"Error: {e.message}"
        return _table_redirect(relation.name)

    response = HttpResponse(export_table_view_excel(view), content_type=XLSX_CONTENT_TYPE)
    response["Content-Disposition"] = f'attachment; filename="{relation.name}.xlsx"'
    return response


# ===============================
# ROWS
# ===============================
@dashboard_view("dashboard/row_form.html")
def add_row(request, relation):
    relation = get_relation(relation)
    if relation.is_identity_store:
        return redirect("dashboard:account_add")

    try:
        headers = queries.get_form_headers(relation.name)
    except GatewayError as e:
        request.session["error_message"] = f"Error: {e.message}"
        return _table_redirect(relation.name)

    columns = relation.editable_columns(headers)
    prefill = {"user_id": request.GET["user_id"]} if request.GET.get("user_id") else None
    form = RowForm(
        request.POST or None,
        relation=relation,
        columns=columns,
        accounts=queries.get_accounts(),
        initial=row_form_initial(relation, columns, prefill=prefill),
    )
    return _save_row_form(request, relation, form, mode="add")


@dashboard_view("dashboard/row_form.html")
def edit_row(request, relation, pk):
    relation = get_relation(relation)
    if relation.is_identity_store:
        raise Http404("Users are managed from the user page.")

    try:
        row = queries.get_row(relation.name, pk)
        accounts = queries.get_accounts()
    except GatewayError as e:
        request.session["error_message"] = f"Error: {e.message}"
        return _table_redirect(relation.name)
    if row is None:
        raise Http404(f"No row {pk} in {relation.name}")

    columns = relation.editable_columns(row.keys())
    form = RowForm(
        request.POST or None,
        relation=relation,
        columns=columns,
        accounts=accounts,
        sample_row=row,
        initial=row_form_initial(relation, columns, row=row),
    )
    return _save_row_form(request, relation, form, mode="edit", pk=pk)


def _save_row_form(request, relation, form, mode, pk=None):
    error = None
    if request.method == "POST" and form.is_valid():
        error = queries.save_row(relation.name, form.payload(), primary_key=pk)
        if error is None:
            request.session["success_message"] = f"Row {'added' if mode == 'add' else 'updated'} successfully!"
            return _table_redirect(relation.name)

    return {
        "relation": relation,
        "form": form,
        "mode": mode,
        "pk": pk,
        "error": error,
    }


@dashboard_view()
@require_http_methods(["POST"])
def delete_row(request, relation, pk):
    relation = get_relation(relation)
    error = queries.delete_row(relation.name, pk)
    if error:
        request.session["error_message"] = f"Error: {error}"
    else:
        request.session["success_message"] = "Row deleted successfully!"
    return _table_redirect(relation.name)


# ===============================
# USERS
# ===============================
@dashboard_view("dashboard/account_add.html")
def add_account(request):
    form = AccountCreateForm(request.POST or None)
    error = None

    if request.method == "POST" and form.is_valid():
        error = queries.create_account(
            form.cleaned_data["email"],
            form.cleaned_data["password"],
            form.cleaned_data["metadata"],
        )
        if error is None:
            request.session["success_message"] = "User created successfully!"
            return _table_redirect("users")

    return {"form": form, "error": error}


@dashboard_view("dashboard/account_manage.html")
def manage_account(request, account_id):
    account = queries.get_account(account_id)
    if account is None:
        raise Http404("User not found")

    form = AccountMetadataForm.for_account(account, request.POST or None)
    error = None

    if request.method == "POST" and form.is_valid():
        error = queries.update_account_metadata(account.id, form.cleaned_data["metadata"])
        if error is None:
            request.session["success_message"] = "User metadata updated successfully!"
            return _table_redirect("users")

    return {"account": account, "form": form, "error": error}


@dashboard_view()
@require_http_methods(["POST"])
def delete_account(request, account_id):
    error = queries.delete_account(account_id)
    if error:
        request.session["error_message"] = f"Error: {error}"
        return redirect("dashboard:account_manage", account_id=account_id)

    request.session["success_message"] = "User deleted successfully!"
    return _table_redirect("users")
