"""
Core Application - Infrastructure & Base Classes

Generic building blocks shared by the domain apps. Nothing here knows about
conversations or messages.

Models (import from core.models):
    - BaseModel: Abstract model with timestamps (created_at, updated_at)

Model Mixins (import from core.model_mixins):
    - UUIDPrimaryKeyMixin: UUID as primary key

Services (import from core.services):
    - BaseService: Base class for service layer
    - ServiceResult: Standard result wrapper for success/failure handling

Middleware (core.middleware):
    - RequestIDMiddleware: X-Request-ID correlation header
    - RequestIDLogFilter: Adds request_id to log records

Checks (core.checks):
    - Deployment configuration checks registered in CoreConfig.ready()

Views (core.views):
    - health_check: Database and channel layer status
"""
