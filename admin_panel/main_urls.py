# admin_panel/main_urls.py
from django.urls import path, include

# --- URL patterns ---
urlpatterns = [
    # Dashboard (tables, rows, identity-store users)
    path("", include("dashboard.dashboard_urls")),

    # Authentication routes
    path("accounts/", include("accounts.auth_urls")),
]
