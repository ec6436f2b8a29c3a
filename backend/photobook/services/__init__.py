"""
Photobook Backend — Services Layer
====================================

What:  Business rules between the routes (HTTP) and the database.

Service Inventory:
    - SubmissionService:    submission store and status state machine
    - NotificationService:  inbox CRUD, best-effort fan-out, badge counts
    - ApprovalWorkflow:     transition + notification orchestration

Services are stateless singletons. Every method receives the request's
AsyncSession, and capability decisions take an explicit AuthContext.
"""
