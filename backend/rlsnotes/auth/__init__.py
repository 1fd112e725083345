# Auth package init
"""
RLS Notes: Auth Package
========================

What:  The auth session provider: signed session cookie, token refresh, and the
       `require_auth_session` dependency that every note route resolves first.
"""
