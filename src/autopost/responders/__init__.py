"""
Responder subsystem.

Components:
- responder_models.py: Responder record and whole-word alias matching
- responder_store.py: SQLite-backed storage
- responder_index.py: in-memory destination -> responders cache
- responder_api.py: parsing/rendering helpers used by the commands
"""
