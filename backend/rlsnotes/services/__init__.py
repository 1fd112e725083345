# Services package init
"""
RLS Notes: Services Layer
===========================

Service Inventory:
    - NoteService: view, delete and list notes through the RLS-scoped DataClient

Services take the data client and the auth session as arguments and return
outcome values; they never read request state or build HTTP responses.
"""
