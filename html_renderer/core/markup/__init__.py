"""
Markup Module
=============

Pulls renderable HTML out of raw text payloads.
"""
