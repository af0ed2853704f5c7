"""
Django admin configuration for authentication models.

Related files:
    - models.py: Model definitions
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin configuration for User model.

    Customized for phone-number authentication. The password field
    holds the hashed PIN.
    """

    list_display = (
        "phone_number",
        "business_name",
        "subscription_status",
        "is_verified",
        "is_active",
        "date_joined",
    )
    list_filter = (
        "subscription_status",
        "is_active",
        "is_staff",
        "is_verified",
        "date_joined",
    )
    search_fields = ("phone_number", "business_name")
    ordering = ("-date_joined",)

    fieldsets = (
        (None, {"fields": ("phone_number", "password")}),
        ("Business", {"fields": ("business_name", "subscription_status")}),
        (
            "Status",
            {"fields": ("is_verified", "is_active", "is_staff", "is_superuser")},
        ),
        ("Permissions", {"fields": ("groups", "user_permissions")}),
        ("Important dates", {"fields": ("date_joined", "last_login")}),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("phone_number", "business_name", "password1", "password2"),
            },
        ),
    )

    readonly_fields = ("date_joined", "last_login")
