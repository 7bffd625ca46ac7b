"""
storefront.auth

Authentication/authorization package.

Responsibilities:
- Role hierarchy and capability checks.
- Role Authority (role resolution against the employees table).
- Access-token validation and FastAPI auth dependencies.
"""

# Package marker.
