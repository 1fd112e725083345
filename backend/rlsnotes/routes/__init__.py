# Routes package init
"""
RLS Notes: Routes Package
===========================

Route Inventory:
    - notes.py:   GET    /rls/notes             (list the caller's notes)
                  GET    /rls/notes/{note_id}   (view one note)
                  DELETE /rls/notes/{note_id}   (delete one note; also form POST + _method=delete)
    - health.py:  GET    /health                (service health check)

Routes stay thin: resolve the session, call the service, render the outcome,
commit the session.
"""
