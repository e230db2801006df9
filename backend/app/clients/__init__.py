"""
clients — Client record management.

Sub-modules:
    models      — ORM entity and the mutable field set
    repository  — PostgreSQL persistence (create / get / update)
    notifier    — Detached "client created" notifications
    service     — Validation, persistence and search orchestration
"""
