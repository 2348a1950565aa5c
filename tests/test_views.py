import pytest


# -------------------------
# Login gate
# -------------------------
@pytest.mark.parametrize("url", ["/", "/table/subscriptions/", "/users/add/"])
def test_dashboard_requires_login(client, url):
    response = client.get(url)
    assert response.status_code == 302
    assert response.url == "/accounts/login/"


def test_login_page_renders(client):
    response = client.get("/accounts/login/")
    assert response.status_code == 200
    assert b"Sign in" in response.content


def test_login_with_wrong_password(client, operator):
    response = client.post("/accounts/login/", {"username": "admin", "password": "nope"})

    assert response.status_code == 200
    assert b"Invalid username or password." in response.content
    assert not client.session.get("authenticated")


def test_login_without_configured_hash(client, settings):
    settings.DASHBOARD_PASSWORD_HASH = ""
    response = client.post("/accounts/login/", {"username": "admin", "password": "secret"})
    assert b"Invalid username or password." in response.content


def test_login_and_logout(client, operator, fake_gateway):
    response = client.post("/accounts/login/", operator)
    assert response.status_code == 302
    assert response.url == "/"
    assert client.session["authenticated"] is True

    response = client.get("/accounts/logout/")
    assert response.url == "/accounts/login/"
    assert client.get("/table/subscriptions/").status_code == 302


def test_index_redirects_to_first_relation(logged_in_client):
    response = logged_in_client.get("/")
    assert response.status_code == 302
    assert response.url == "/table/subscriptions/"


# -------------------------
# Table page
# -------------------------
def test_table_shows_placeholders_sorted_by_email(logged_in_client):
    response = logged_in_client.get("/table/subscriptions/")
    html = response.content.decode()

    assert response.status_code == 200
    assert "a@x.com" in html and "b@x.com" in html and "N/A" in html
    positions = [
        html.index('id="row-user-placeholder-u3"'),
        html.index('id="row-5"'),
        html.index('id="row-user-placeholder-u2"'),
    ]
    assert positions == sorted(positions)
    assert "/table/subscriptions/rows/add/?user_id=u2" in html
    assert "Add Subscription" in html
    assert "/table/subscriptions/rows/5/edit/" in html


def test_table_shows_login_toast_once(logged_in_client):
    first = logged_in_client.get("/table/subscriptions/")
    second = logged_in_client.get("/table/subscriptions/")

    assert b"Welcome back, admin." in first.content
    assert b"Welcome back, admin." not in second.content


def test_sidebar_marks_active_relation(logged_in_client):
    response = logged_in_client.get("/table/referral_usage/")
    assert response.context["active_menu"] == "referral_usage"
    assert [item["key"] for item in response.context["menu_items"]] == [
        "subscriptions", "referral_usage", "user_progress", "users",
    ]


def test_pass_through_table_renders_json_and_emails(logged_in_client):
    html = logged_in_client.get("/table/referral_usage/").content.decode()

    assert "campaign_x" in html
    assert html.index('id="row-2"') < html.index('id="row-1"')
    assert "user-placeholder" not in html


def test_empty_table_without_accounts(logged_in_client, fake_gateway):
    fake_gateway.accounts = []
    response = logged_in_client.get("/table/user_progress/")
    assert b"No Rows Found" in response.content


def test_fetch_error_shows_banner(logged_in_client, fake_gateway):
    fake_gateway.fail("list_rows", "permission denied for table subscriptions", kind="authorization")

    response = logged_in_client.get("/table/subscriptions/")

    assert response.status_code == 200
    assert b"Error fetching data: permission denied for table subscriptions" in response.content
    assert response.context["table_rows"] == []


def test_unknown_relation_is_404(logged_in_client):
    assert logged_in_client.get("/table/invoices/").status_code == 404


def test_users_table(logged_in_client):
    html = logged_in_client.get("/table/users/").content.decode()

    assert "Add User" in html
    assert "/users/u2/" in html
    assert "editor" in html


def test_export_table(logged_in_client):
    response = logged_in_client.get("/table/subscriptions/export/")

    assert response.status_code == 200
    assert response["Content-Disposition"] == 'attachment; filename="subscriptions.xlsx"'
    assert response.content.startswith(b"PK")


# -------------------------
# Row forms
# -------------------------
def test_add_row_prefills_user_from_placeholder(logged_in_client):
    response = logged_in_client.get("/table/subscriptions/rows/add/?user_id=u2")

    form = response.context["form"]
    assert form.initial["user_id"] == "u2"
    assert list(form.fields) == ["user_id", "plan", "status", "start_date", "end_date"]
    assert form.fields["user_id"].input_kind == "account"
    assert form.fields["plan"].input_kind == "choice"


def test_add_row_json_template(logged_in_client):
    response = logged_in_client.get("/table/referral_usage/rows/add/")
    assert "manual_entry" in response.context["form"].initial["details"]


def test_add_row_for_users_goes_to_account_form(logged_in_client):
    response = logged_in_client.get("/table/users/rows/add/")
    assert response.url == "/users/add/"


def test_add_row_success(logged_in_client, fake_gateway):
    response = logged_in_client.post(
        "/table/subscriptions/rows/add/",
        {"user_id": "u2", "plan": "bronze", "status": "active", "start_date": "", "end_date": ""},
    )

    assert response.status_code == 302
    assert response.url == "/table/subscriptions/"
    assert fake_gateway.calls[-1] == (
        "insert_row", "subscriptions",
        {"user_id": "u2", "plan": "bronze", "status": "active", "start_date": None, "end_date": None},
    )
    assert b"Row added successfully!" in logged_in_client.get(response.url).content


def test_add_row_invalid_json_stays_on_form(logged_in_client, fake_gateway):
    response = logged_in_client.post(
        "/table/referral_usage/rows/add/",
        {"referral_code": "X", "user_id": "u1", "used_at": "", "details": "{bad"},
    )

    assert response.status_code == 200
    assert b"Invalid JSON format" in response.content
    assert fake_gateway.count("insert_row") == 0


def test_add_row_gateway_error_is_inline(logged_in_client, fake_gateway):
    fake_gateway.fail("insert_row", "new row violates row-level security policy")

    response = logged_in_client.post(
        "/table/subscriptions/rows/add/",
        {"user_id": "u2", "plan": "bronze", "status": "", "start_date": "", "end_date": ""},
    )

    assert response.status_code == 200
    assert b"Error: new row violates row-level security policy" in response.content


def test_edit_row(logged_in_client, fake_gateway):
    response = logged_in_client.get("/table/subscriptions/rows/5/edit/")
    assert response.status_code == 200
    assert response.context["form"].initial["plan"] == "silver"
    assert response.context["form"].initial["start_date"] == "2024-01-01T00:00"

    response = logged_in_client.post(
        "/table/subscriptions/rows/5/edit/",
        {"user_id": "u1", "plan": "bronze", "status": "canceled", "start_date": "2024-01-01T00:00", "end_date": ""},
    )

    assert response.status_code == 302
    assert fake_gateway.calls[-1][:3] == ("update_row", "subscriptions", 5)
    assert fake_gateway.tables["subscriptions"][0]["plan"] == "bronze"
    assert b"Row updated successfully!" in logged_in_client.get(response.url).content


def test_edit_missing_row_is_404(logged_in_client):
    assert logged_in_client.get("/table/subscriptions/rows/99/edit/").status_code == 404


def test_delete_row(logged_in_client, fake_gateway):
    assert logged_in_client.get("/table/subscriptions/rows/5/delete/").status_code == 405

    response = logged_in_client.post("/table/subscriptions/rows/5/delete/")

    assert response.url == "/table/subscriptions/"
    assert fake_gateway.tables["subscriptions"] == []
    assert b"Row deleted successfully!" in logged_in_client.get(response.url).content


def test_delete_row_error_toast(logged_in_client, fake_gateway):
    fake_gateway.fail("delete_row", "row is referenced")

    response = logged_in_client.post("/table/subscriptions/rows/5/delete/", follow=True)

    assert b"Error: row is referenced" in response.content


# -------------------------
# Users
# -------------------------
def test_create_account(logged_in_client, fake_gateway):
    response = logged_in_client.post(
        "/users/add/", {"email": "n@x.com", "password": "pw", "metadata": '{"plan": "pro"}'}
    )

    assert response.url == "/table/users/"
    assert ("create_account", "n@x.com", "pw", {"plan": "pro"}) in fake_gateway.calls
    html = logged_in_client.get(response.url).content.decode()
    assert "User created successfully!" in html
    assert "n@x.com" in html


def test_create_account_requires_password(logged_in_client, fake_gateway):
    response = logged_in_client.post("/users/add/", {"email": "n@x.com", "password": "", "metadata": "{}"})

    assert response.status_code == 200
    assert b"Email and password are required." in response.content
    assert fake_gateway.count("create_account") == 0


def test_create_account_rejects_array_metadata(logged_in_client, fake_gateway):
    response = logged_in_client.post("/users/add/", {"email": "n@x.com", "password": "pw", "metadata": "[1]"})

    assert b"must be a valid JSON object" in response.content
    assert fake_gateway.count("create_account") == 0


def test_manage_account(logged_in_client, fake_gateway):
    response = logged_in_client.get("/users/u2/")
    assert response.status_code == 200
    assert "editor" in response.context["form"].initial["metadata"]

    response = logged_in_client.post("/users/u2/", {"metadata": '{"role": "admin"}'})

    assert response.url == "/table/users/"
    assert ("update_account_metadata", "u2", {"role": "admin"}) in fake_gateway.calls
    assert b"User metadata updated successfully!" in logged_in_client.get(response.url).content


def test_manage_unknown_account_is_404(logged_in_client):
    assert logged_in_client.get("/users/nobody/").status_code == 404


def test_delete_account(logged_in_client, fake_gateway):
    response = logged_in_client.post("/users/u1/delete/")

    assert response.url == "/table/users/"
    assert "u1" not in [a.id for a in fake_gateway.accounts]


def test_delete_account_error_returns_to_manage_page(logged_in_client, fake_gateway):
    fake_gateway.fail("delete_account", "User not allowed", kind="authorization")

    response = logged_in_client.post("/users/u1/delete/")

    assert response.url == "/users/u1/"
    assert b"Error: User not allowed" in logged_in_client.get(response.url).content


def test_add_row_fetches_one_sample_row_and_cached_accounts(logged_in_client, fake_gateway):
    logged_in_client.get("/table/subscriptions/rows/add/")
    logged_in_client.post(
        "/table/subscriptions/rows/add/",
        {"user_id": "u2", "plan": "bronze", "status": "", "start_date": "", "end_date": ""},
    )

    list_rows_calls = [call for call in fake_gateway.calls if call[0] == "list_rows"]
    assert list_rows_calls == [("list_rows", "subscriptions", None, False, 1)] * 2
    assert fake_gateway.count("list_accounts") == 1


def test_add_row_fetch_error_returns_to_table(logged_in_client, fake_gateway):
    fake_gateway.fail("list_rows", "relation does not exist", kind="not_found")

    response = logged_in_client.get("/table/subscriptions/rows/add/", follow=True)

    assert b"Error: relation does not exist" in response.content


def test_users_row_delete_is_refused(logged_in_client, fake_gateway):
    response = logged_in_client.post("/table/users/rows/1/delete/", follow=True)

    assert b"Delete operation is not permitted for users table." in response.content
    assert fake_gateway.count("delete_account") == 0


# -------------------------
# View decorator
# -------------------------
def test_template_less_view_must_return_response(rf):
    from dashboard.base_views import dashboard_view

    @dashboard_view()
    def context_only(request):
        return {"ok": True}

    request = rf.get("/")
    request.session = {"authenticated": True}

    with pytest.raises(TypeError, match="context_only has no template"):
        context_only(request)
