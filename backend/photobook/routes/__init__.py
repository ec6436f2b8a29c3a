"""
Photobook Backend — API Routes Package
========================================

Route Inventory:
    - submissions.py:    GET/POST /api/submissions, GET/PUT /api/submissions/{id}
    - notifications.py:  GET/POST/PUT /api/notifications
                         GET /api/notifications/pending-count
                         DELETE /api/notifications/{id}
    - admin.py:          GET /api/admin/pending-counts
    - health.py:         GET /health

Routes stay thin: parse the request, build the AuthContext, call one service,
wrap the result in the `{success: true, ...}` envelope.
"""
