"""
Presentation Layer - External Interfaces

Contains:
- mcp_server: MCP tools over stdio
"""
