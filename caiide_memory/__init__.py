"""
caiide-memory - client for the memory worker process
"""

__version__ = "0.1.0"
__logo__ = "🧠"
