"""Meta targeting assistant.

Matches free-text marketing criteria to ads-platform interest suggestions,
runs batches of criteria with progress reporting, and keeps stored results
fresh by retrying suggestions reported with a zero audience.
"""

__version__ = "1.0.0"
