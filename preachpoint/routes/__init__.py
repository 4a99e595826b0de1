# Routes package init
"""
Preach Point Backend — API Routes Package
===========================================

Route Inventory:
    - health.py:  GET  /health            (static liveness status)
    - sermon.py:  *    /process-sermon    (POST processes; OPTIONS preflight;
                                           anything else 405)

Routes stay thin: they read the request and format the response. Policy and
business logic live in services.
"""
