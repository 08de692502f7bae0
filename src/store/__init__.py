"""Storage collaborators.

This module persists job documents and validated records, and reads
uploaded objects from local disk or S3.
"""
