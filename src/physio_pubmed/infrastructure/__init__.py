"""
Infrastructure Layer - External Services

Contains:
- ncbi: PubMed E-utilities client and record parser
- cache: In-memory response cache
"""
