"""
Schemas module - entities plus request/response schemas for API endpoints.

Everything lives in careerhub.schemas.schemas:
- Entities (Question, College, Course, Student, AptitudeTest, TestResult, Application)
- Request schemas (what the API accepts)
- Response schemas (what the API returns)
"""
