# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import key_value, notification

# Explicit class exports for cleaner imports
from .key_value import KeyValueEntry
from .notification import Notification

__all__ = [
    "KeyValueEntry",
    "Notification",
]
