"""
Core package — cross-cutting concerns.

Modules:
    config          — environment variables & settings
    logging_config  — structured JSON logging
    middleware      — request logging & request-id propagation
    errors          — exception hierarchy & handlers
    health          — dependency probes & health aggregation
    database        — async PostgreSQL engine and ORM base
    cache           — Redis cache layer
    container       — dependency wiring for the app lifespan
"""
