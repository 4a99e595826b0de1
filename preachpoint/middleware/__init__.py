# Middleware package init
"""
Preach Point Backend — Middleware Package
===========================================

Middleware Chain:
    Request → [Request ID] → [Logging] → Route Handler

    Request ID runs first so the access log line carries the correlation ID.

Rate limiting and CORS are not middleware here: both apply only to
/process-sermon and are handled by SermonProcessor, which needs them in a
fixed order relative to the method gate.
"""
