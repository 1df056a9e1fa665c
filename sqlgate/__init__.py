"""
sqlgate: safe, paginated, cached SQL execution for LLM tool servers.
"""

__version__ = "0.1.0"
