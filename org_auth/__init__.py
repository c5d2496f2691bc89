"""
Org Auth Library

Authentication and organization access control for multi-tenant apps.

Core design:
- Session lifecycle: access/refresh token pairs, refresh tokens tracked in a
  fast key-value cache so they can be rotated and revoked
- Organization membership: admin-only mutations, last-admin protection,
  membership mirrored on both the organization and the user record
- Collaborators (stores, cache, hasher, signer) are injected, never global
"""

__version__ = "1.0.0"
__author__ = "Org Auth Team"
__description__ = "Multi-tenant authentication and organization access control"
