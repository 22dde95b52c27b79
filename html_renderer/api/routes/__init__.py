"""
API Routes
==========

Route modules for the render and health endpoints.
"""
