"""
Python client for the mite time tracking REST API.

:class:`MiteClient` exposes one method per API operation for time
entries, customers, projects, services and users. It validates and
converts arguments locally and sends requests through a
:class:`RestClient`, which owns the HTTP details: the ``X-MiteApiKey``
header, user agent, content negotiation and the mapping of responses to
data or typed errors.

Examples
--------

```python
from mite import MiteClient, RestClient

client = MiteClient(RestClient("https://demo.mite.yo.lk", "YOUR_API_KEY"))

# Entries of today grouped by project
entries = client.list_entries({"at": "today"}, ["project"])

customer = client.get_customer(42)
```

Configuration not passed explicitly is read from the environment (or a
``.env`` file) through :data:`mite.config.settings`: ``MITE_URL``,
``MITE_API_KEY``, ``MITE_USERNAME``, ``MITE_PASSWORD``,
``MITE_USER_AGENT``, ``MITE_VERIFY_SSL``, ``MITE_TIMEOUT`` and
``MITE_EXPECTED_CONTENT_TYPE``.
"""

from .client import MiteClient
from .config import MiteSettings, settings
from .exceptions import (
    ApiUnavailableError,
    CustomerNotFoundError,
    EntryNotFoundError,
    InvalidArgumentError,
    MiteError,
    NotFoundError,
    ProjectNotFoundError,
    RuntimeApiError,
    ServiceNotFoundError,
    UnsupportedMethodError,
    UserNotFoundError,
)
from .rest import RestClient
from .types import Outcome

__all__ = [
    "MiteClient",
    "RestClient",
    "Outcome",
    "MiteSettings",
    "settings",
    "MiteError",
    "InvalidArgumentError",
    "UnsupportedMethodError",
    "ApiUnavailableError",
    "RuntimeApiError",
    "NotFoundError",
    "EntryNotFoundError",
    "CustomerNotFoundError",
    "ProjectNotFoundError",
    "ServiceNotFoundError",
    "UserNotFoundError",
]
