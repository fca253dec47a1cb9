"""
Admin forms for email-identified accounts.

Emails are compared case-insensitively, matching how `CustomUser.save`
normalizes them.
"""

from django import forms
from django.contrib.auth.forms import UserChangeForm, UserCreationForm
from django.utils.translation import gettext_lazy as _

from .models import CustomUser


def _unique_email(form, value):
    value = value.strip().lower()
    queryset = CustomUser.objects.filter(email=value)
    if form.instance.pk:
        queryset = queryset.exclude(pk=form.instance.pk)
    if queryset.exists():
        raise forms.ValidationError(_("An account with this email already exists."))
    return value


class CustomUserCreationForm(UserCreationForm):
    class Meta:
        model = CustomUser
        fields = ("email", "role")

    def clean_email(self):
        return _unique_email(self, self.cleaned_data["email"])


class CustomUserChangeForm(UserChangeForm):
    class Meta:
        model = CustomUser
        fields = ("email", "role", "is_email_verified", "first_name", "last_name", "phone_number")

    def clean_email(self):
        return _unique_email(self, self.cleaned_data["email"])
