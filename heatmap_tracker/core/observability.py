import logging

import sentry_sdk
from sentry_sdk.integrations.logging import LoggingIntegration

from heatmap_tracker.settings import Settings


def init_sentry(app_settings: Settings) -> None:
    """Initialize Sentry SDK when DSN is configured.

    Log records at the configured log level become breadcrumbs and errors
    become events, so structlog output reaches Sentry through stdlib logging.
    Request traces are only sampled in production.
    """

    if not app_settings.sentry_dsn:
        return

    traces_sample_rate = 0.0
    if app_settings.is_production:
        traces_sample_rate = app_settings.sentry_traces_sample_rate

    sentry_sdk.init(
        dsn=app_settings.sentry_dsn,
        environment=app_settings.environment,
        release=app_settings.release,
        traces_sample_rate=traces_sample_rate,
        send_default_pii=False,
        integrations=[
            LoggingIntegration(
                level=app_settings.log_level_value,
                event_level=logging.ERROR,
            )
        ],
    )
    sentry_sdk.set_tag("heatmap_window_days", app_settings.heatmap_window_days)
