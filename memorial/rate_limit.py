"""
Per-client request budgets, enforced by Flask-Limiter.

Budgets are read from ``app.config`` (``RATELIMIT_API`` and friends) when a
request is checked, so an app or a test can override them. Flask-Limiter's
own ``RATELIMIT_ENABLED`` switch turns limiting off. Requests over budget are
rejected with 429; nothing is queued.
"""
from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

DEFAULT_LIMITS = {
    "RATELIMIT_API": "1000 per 15 minutes",
    "RATELIMIT_AUTH": "10 per 15 minutes",
    "RATELIMIT_SEARCH": "60 per minute",
    "RATELIMIT_UPLOAD": "50 per hour",
}

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    headers_enabled=True,
)


def configured(key: str):
    return lambda: current_app.config[key]


# Applied to the whole API blueprint.
api_limit = limiter.limit(configured("RATELIMIT_API"))

# Route budgets stack on top of the blueprint budget.
auth_limit = limiter.limit(configured("RATELIMIT_AUTH"), override_defaults=False)
search_limit = limiter.limit(configured("RATELIMIT_SEARCH"), override_defaults=False)
upload_limit = limiter.limit(configured("RATELIMIT_UPLOAD"), override_defaults=False)


def init_app(app) -> Limiter:
    for key, value in DEFAULT_LIMITS.items():
        app.config.setdefault(key, value)
    limiter.init_app(app)
    return limiter
