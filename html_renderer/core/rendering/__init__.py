"""
Rendering Module
===============

Browser automation for PNG screenshot generation.

Components:
- viewport: Two-phase geometry resolution
- browser_locator: Chromium executable discovery
- driver: Single-use Playwright render session
- postprocess: Optional PNG re-encoding
"""
