from datetime import date

from fastapi import Request

from heatmap_tracker.settings import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_today() -> date:
    """Current calendar day, truncated to local midnight."""

    return date.today()
