"""Event Gate Check-In API."""


def load_models():
    """Import every model so string-based relationships resolve."""
    from app.core import models  # noqa: F401


load_models()
