"""
Core Business Logic
==================

Render pipeline components.

Components:
- markup: Extraction of renderable HTML from raw payloads
- rendering: Viewport resolution, browser discovery and capture
- storage: Object storage publishing
- pipeline: Per-request orchestration
"""
