# dashboard/dashboard_urls.py
from django.urls import path
from . import dashboard_views

app_name = "dashboard"

urlpatterns = [
    path("", dashboard_views.index, name="index"),

    # ===============================
    # TABLES
    # ===============================
    path("table/<str:relation>/", dashboard_views.table_view, name="table"),
    path("table/<str:relation>/export/", dashboard_views.export_table, name="export_table"),
    path("table/<str:relation>/rows/add/", dashboard_views.add_row, name="add_row"),
    path("table/<str:relation>/rows/<int:pk>/edit/", dashboard_views.edit_row, name="edit_row"),
    path("table/<str:relation>/rows/<int:pk>/delete/", dashboard_views.delete_row, name="delete_row"),

    # ===============================
    # USERS (identity store)
    # ===============================
    path("users/add/", dashboard_views.add_account, name="account_add"),
    path("users/<str:account_id>/", dashboard_views.manage_account, name="account_manage"),
    path("users/<str:account_id>/delete/", dashboard_views.delete_account, name="account_delete"),
]
