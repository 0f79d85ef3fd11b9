"""
Serving: FastAPI application for document processing and chat.

Run with ``docqa-serve`` or ``uvicorn docqa.serving.app:app``.
"""
