# accounts/forms.py
from django import forms


class LoginForm(forms.Form):
    """Single-operator sign-in. Credentials are checked in the view against settings."""

    username = forms.CharField(
        label="Username",
        max_length=150,
        widget=forms.TextInput(attrs={
            "class": "form-control",
            "autocomplete": "username",
            "autofocus": True,
        }),
    )
    password = forms.CharField(
        label="Password",
        strip=False,
        widget=forms.PasswordInput(attrs={
            "class": "form-control",
            "autocomplete": "current-password",
        }),
    )

    def clean_username(self):
        return self.cleaned_data["username"].strip()

    def clean(self):
        cleaned_data = super().clean()
        if not cleaned_data.get("username") or not cleaned_data.get("password"):
            raise forms.ValidationError("Please enter a username and password.")
        return cleaned_data

    def credentials(self):
        return self.cleaned_data["username"], self.cleaned_data["password"]
