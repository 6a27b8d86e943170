"""Statements app configuration."""

from django.apps import AppConfig


class StatementsConfig(AppConfig):
    """Configuration for the statements app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "statements"
    verbose_name = "Statements"
