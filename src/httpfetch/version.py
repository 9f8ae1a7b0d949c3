"""Package version."""

__version__ = "0.1.0"

USER_AGENT = f"httpfetch/{__version__}"
