"""
Todo AI backend package.

FastAPI service for personal todo management with LLM-backed extraction of
todos from natural language and narrative summaries of todo collections.
The application instance lives in ``todo_ai.main``.
"""

__version__ = "0.1.0"
