"""
API route modules for the SGI FV views.

This package contains subrouters for:
- Auth: login, refresh, logout and current session
- Dashboard and navigation
- Processes and their event log
- Clients (process tracking) and member access management
- Organizations and the financial overview/export

Routers are included from sgi_fv.api.main (under the /api/v1 prefix).
"""
