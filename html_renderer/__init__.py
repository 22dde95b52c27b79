"""
HTML Renderer
=============

A small HTTP service that converts HTML markup into PNG images with a
headless Chromium browser and optionally publishes them to S3-compatible
object storage.

This package provides:
- Markdown fence extraction for HTML payloads
- Two-phase viewport resolution (caller hints or measured content width)
- Playwright-driven capture with unconditional browser teardown
- Cloudflare R2 / S3 upload of rendered images
- FastAPI REST endpoints for HTTP access
"""

__version__ = "1.0.0"
__author__ = "HTML Renderer Team"
