"""
API Module
==========

FastAPI application, authentication and routes.
"""
