# Middleware package init
"""
Storybook Backend - Middleware Package
========================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [Method Override] → Route Handler

    1. Request ID first: everything after it can log the correlation id
    2. Logging: records the method as the client sent it, plus status/duration
    3. Method Override last: rewrites POST + _method just before routing
"""
