"""
storefront.session

Session continuity package.

Responsibilities:
- Session cookie codec (`cookies`).
- Refresh client for the hosted backend (`refresh`).
- Request-boundary gate middleware (`gate`).
"""

# Package marker.
