# accounts/views.py
import logging

import bcrypt
from django.conf import settings
from django.shortcuts import render, redirect

from .forms import LoginForm

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Credential check
# -------------------------------------------------------------------
def check_operator_credentials(username: str, password: str) -> bool:
    """
    Compare against the single operator configured in settings.
    The password is only ever stored as a bcrypt hash.
    """
    expected_username = getattr(settings, "DASHBOARD_USERNAME", "")
    password_hash = getattr(settings, "DASHBOARD_PASSWORD_HASH", "")
    if not expected_username or not password_hash:
        logger.error("DASHBOARD_USERNAME / DASHBOARD_PASSWORD_HASH are not configured; refusing login")
        return False
    if username != expected_username:
        return False
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError as e:
        logger.error("DASHBOARD_PASSWORD_HASH is not a valid bcrypt hash: %s", e)
        return False


# -------------------------------------------------------------------
# Login view
# -------------------------------------------------------------------
def login_view(request):
    """
    Handle operator login.
    Always start with a clean session when accessing /login/.
    """
    request.session.flush()

    form = LoginForm(request.POST or None)
    error = None

    if request.method == "POST" and form.is_valid():
        username, password = form.credentials()

        if check_operator_credentials(username, password):
            request.session["authenticated"] = True
            request.session["username"] = username
            request.session["success_message"] = f"Welcome back, {username}."
            logger.info("Operator %s logged in", username)
            return redirect(settings.LOGIN_REDIRECT_URL)

        error = "Invalid username or password."
        logger.warning("Failed login attempt for %s", username)

    return render(request, "accounts/login.html", {"form": form, "error": error})


# -------------------------------------------------------------------
# Logout view
# -------------------------------------------------------------------
def logout_view(request):
    """Logout the current operator and clear session."""
    request.session.flush()
    return redirect("accounts:login")
