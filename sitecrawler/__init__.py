"""Same-domain web crawler with robots.txt checks, text extraction and MongoDB storage."""

__version__ = "0.1.0"