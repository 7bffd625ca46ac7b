"""
storefront.api

HTTP API package (FastAPI).

Responsibilities:
- App factory and middleware composition.
- Routers for health, auth/role queries, staff provisioning, and back-office access.
"""

# Package marker.
