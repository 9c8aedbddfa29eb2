"""
CareerHub - Career Guidance Platform
Connects students and colleges: profiles, course discovery, aptitude tests
and application tracking.

Architecture:
- REST layer: FastAPI routers under /api
- Services: stateless, request-scoped business rules
- Stores: one interface per entity, backed by either
  MongoDB (documents) or PostgreSQL (relational, row-level security)
- Identity: delegated to an external provider (Supabase GoTrue)
"""

__version__ = "1.0.0"
