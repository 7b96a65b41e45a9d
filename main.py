import sys
import uvicorn
from storefront.main import app  # noqa: F401  re-exported for "uvicorn main:app"


def run_http(port: int = 8000, reload: bool = False):
    """Run HTTP server"""
    print(f"🚀 Starting HTTP server on port {port}...")
    uvicorn.run(
        "storefront.main:app",  # Use string import
        host="0.0.0.0",
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    run_http(reload="--reload" in sys.argv)
