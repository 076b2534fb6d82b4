"""
Permission feature module.

Role-based access control scoped to properties: a permission catalog, roles,
global or per-property role assignments, the permission resolver, and the
access guard used by every other feature.
"""
