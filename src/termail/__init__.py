"""termail - a terminal email reader and composer.

This package turns raw RFC 822 messages into text for a terminal and builds
outgoing MIME messages. Mail store and delivery sessions are plugged in from
outside through the protocols in :mod:`termail.session`.
"""

__version__ = "0.1.0"

from termail.config import Settings, get_settings

__all__ = ["Settings", "get_settings", "__version__"]
