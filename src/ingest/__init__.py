"""Streaming ingestion pipeline.

This module reads delimited rows from object streams, validates them,
and batches accepted records into the record store.
"""
