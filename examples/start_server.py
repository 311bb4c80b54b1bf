"""
Intent Tab Organizer Backend Server Entry Point

Starts the FastAPI server for the browser extension.

Usage:
    uv run python examples/start_server.py
"""

import sys

from intent_tabs.config import get_settings, setup_logging


def main():
    """Start the FastAPI server."""

    print("=" * 80)
    print("Intent Tab Organizer Backend Server")
    print("=" * 80)
    print()

    # Verify configuration
    try:
        settings = get_settings()
        setup_logging(settings.log_level)
        print("✓ Configuration loaded")
        print(f"  - LLM Model: {settings.llm_model}")
        print(f"  - Endpoint: {settings.openrouter_base_url}")
        print(f"  - Database: {settings.db_path}")
        if not settings.openrouter_api_key:
            print("  - No OPENROUTER_API_KEY in environment; set one via PUT /api/settings/api-key")
        print()
    except Exception as e:
        print(f"✗ Configuration error: {e}")
        print()
        print("Copy .env.example to .env and adjust the settings.")
        sys.exit(1)

    # Start server
    print("Starting FastAPI server...")
    print(f"Server will be available at: http://localhost:8000")
    print(f"API documentation: http://localhost:8000/docs")
    print()
    print("Press Ctrl+C to stop the server")
    print("=" * 80)
    print()

    import uvicorn
    from intent_tabs.server.app import app

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info",
        reload=False,  # Set to True for development
    )


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nServer stopped by user")
        sys.exit(0)
    except Exception as e:
        print(f"\n\n✗ Server error: {e}")
        sys.exit(1)
