"""FastAPI web layer for Wealth Flow.

Re-exports the application factory so consumers can import directly:
    from Wealth_Flow.web import create_app
"""

from Wealth_Flow.web.app import create_app

__all__ = ["create_app"]
