"""Job dispatch and SDK entry points.

This module claims pending ingestion jobs, runs them one at a time,
and records each outcome on the job document.
"""
