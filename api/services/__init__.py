"""Service layer for business logic.

Services encapsulate all business logic, keeping routes thin and focused
on HTTP handling.

Layer hierarchy:
    Routes (HTTP) -> Services (Business Logic) -> Repositories (Record store)
                                               -> Rendering (Preview, PNG, PDF)

Services should:
- Contain all business rules and validation
- Orchestrate calls to repositories and renderers
- Raise the error taxonomy in ``core.errors``

Services should NOT:
- Call the record store directly (use repositories)
- Know about HTTP request/response details
"""
