"""
Repository layer for data access.

Repositories wrap schema-qualified table operations against the hosted
backend. They assume the provided client carries the caller's bearer token
(see sgi_fv.core.deps.get_backend_client) so row-level security applies.
"""
