"""
Data Models
===========

Request-scoped pipeline entities and API payload schemas.
"""
