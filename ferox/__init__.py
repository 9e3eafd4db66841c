"""Response records, filters, fuzzy hashing, link extraction and wildcard heuristics for web content discovery."""

__version__ = "0.1.0"