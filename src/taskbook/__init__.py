"""Personal task tracker: a JSON-backed task store with a console front end."""

__version__ = "0.1.0"
