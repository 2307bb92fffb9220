from __future__ import annotations

from atsflow.core.config import settings

# Score exports are downloaded by the browser, so the filename header must be readable.
EXPOSED_HEADERS = ["Content-Disposition"]


def cors_allowed_origins() -> list[str]:
    return list(settings.cors_allowed_origins)
