# Middleware package init
"""
Inkwell Backend - Middleware Package
=====================================

Middleware Chain:
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so every later log line can carry it
    - Access Log records method, path, status and duration on the way out;
      /uploads/ hits drop to DEBUG and /health is skipped
"""
