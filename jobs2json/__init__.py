"""Jobs2Json: fetch job posting pages concurrently and extract fields as JSON."""

__version__ = "1.0.0"
