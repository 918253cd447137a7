"""
Command-line entry points.

job-extract runs one request through the extraction pipeline:
1. Fetch - Retrieve the page (URL mode only)
2. Clean - Reduce raw HTML to plain text
3. Extract - Ask the selected model for a structured job record
Every attempt is recorded as a pipeline run.
"""
