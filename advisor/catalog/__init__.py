"""
Catalog access layer.

Responsibilities:
- Locate and read the catalog, questionnaire-mapping and stock tables.
- Validate raw rows into typed records at the load boundary.
- Serve every entity type through a single bulk fetch per call.
"""
