"""
Application Layer - Use Cases

Contains:
- search: Request validation, query building, quality scoring, orchestration
"""
