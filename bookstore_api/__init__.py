"""bookstore_api: an environment-aware HTTP test-client core for the Bookstore API.

Layers follow the same split everywhere in the package:
domain (value objects and interfaces), infrastructure (config, logging,
HTTP transport, polling), core (resource services) and utils (test data).
"""

__version__ = "1.0.0"
