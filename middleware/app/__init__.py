"""
Auth Facade Service
===================

Validates credential forms and forwards them to Supabase Auth, returning a
uniform ``{success, message, field_errors}`` envelope for every use case.

Packages:
    - app.auth   : schemas, provider client, actions, session plumbing, routes
    - app.config : environment-driven settings
    - app.models : response envelopes
    - app.main   : FastAPI application factory
"""
