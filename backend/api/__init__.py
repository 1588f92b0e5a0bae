"""
PixelPerfect API package.

Provides the FastAPI application factory, create_app(), in api.app.
Serve it with uvicorn's factory mode: `uvicorn api.app:create_app --factory`.
"""
