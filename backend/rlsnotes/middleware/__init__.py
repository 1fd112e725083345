# Middleware package init
"""
RLS Notes: Middleware Package
===============================

Middleware Chain:
    Request → [Request ID] → [Logging] → Route Handler

    Request ID runs first so every access log line carries the correlation id.
"""
