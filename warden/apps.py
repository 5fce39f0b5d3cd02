"""
Warden - App Configuration
==========================
Builds the service container when Django finishes loading, so a
misconfigured service refuses to boot instead of failing on first use.
"""

import logging

from django.apps import AppConfig
from django.core.signals import setting_changed

logger = logging.getLogger("warden.container")


def _reset_on_settings_change(*, setting, **kwargs):
    if setting == "WARDEN":
        from warden.container import reset_container

        reset_container()
        logger.info("WARDEN setting changed; service container discarded.")


class WardenConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "warden"
    label = "warden"
    verbose_name = "Warden Authorization"

    def ready(self):
        from warden.container import get_container

        setting_changed.connect(
            _reset_on_settings_change,
            dispatch_uid="warden.reset_on_settings_change",
        )
        get_container()
