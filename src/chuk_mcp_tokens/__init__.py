"""
CHUK Tokens - a design token catalog served over MCP.

Browse primitive and semantic tokens, edit them safely, and find where
each token is used across component sources.
"""

__version__ = "0.1.0"
