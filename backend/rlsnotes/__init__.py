"""
RLS Notes: Application Package
================================

Layers:

    ┌─────────────────────────────────────┐
    │      Routes + Rendering (HTTP)      │  ← status codes, cookies, templates
    ├─────────────────────────────────────┤
    │     Auth session provider           │  ← signed cookie, token refresh
    ├─────────────────────────────────────┤
    │     Services (note operations)      │  ← return tagged outcomes
    ├─────────────────────────────────────┤
    │   DataClient (RLS-scoped sessions)  │  ← one transaction per operation
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
