"""
API Server
Entry point for ASGI hosts and ``python api_server.py``.

    from api_server import app
"""
import os

from api.main import app

__all__ = ["app"]

# Start server when run directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "3001")), log_level="info")
