"""
Storage Module
==============

Upload of rendered images to S3-compatible object storage.
"""
