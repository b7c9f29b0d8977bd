#!/usr/bin/env python3
"""
Content Review API Setup and Run Script

This script prepares a development environment and starts the Content Review
API server.
"""

import os
import sys
from pathlib import Path


def setup_environment():
    """Set up environment variables and configuration"""
    print("Setting up Content Review API environment...")

    # SQLite keeps development free of a PostgreSQL server
    db_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./marketing_dashboard.db")
    os.environ["DATABASE_URL"] = db_url
    print(f"Database URL: {db_url}")

    os.environ.setdefault("ENVIRONMENT", "development")

    if not os.getenv("JWT_SECRET_KEY"):
        print("Warning: JWT_SECRET_KEY not set; tokens will not survive a restart")
    if not os.getenv("WEBHOOK_SECRET"):
        print("Warning: WEBHOOK_SECRET not set; webhooks are accepted without a secret")
    if not (os.getenv("ADMIN_EMAIL") and os.getenv("ADMIN_PASSWORD")):
        print("Warning: ADMIN_EMAIL/ADMIN_PASSWORD not set; no admin account will be created")

    os.environ.setdefault("PYTHONPATH", str(Path.cwd()))
    return True


def check_dependencies():
    """Check if required dependencies are installed"""
    print("Checking dependencies...")

    try:
        import fastapi  # noqa: F401
        import sqlmodel  # noqa: F401
        import uvicorn  # noqa: F401
    except ImportError as e:
        print(f"Missing dependency: {e}")
        print("Install the project first: pip install -e .")
        return False

    print("Core dependencies found")
    return True


def start_server():
    """Start the Content Review API server"""
    port = int(os.getenv("PORT", "3001"))
    print("Starting Content Review API server...")
    print(f"Server will be available at: http://localhost:{port}")
    print(f"Health check endpoint: http://localhost:{port}/api/health")
    print("Press Ctrl+C to stop the server")
    print("-" * 50)

    try:
        import uvicorn

        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=port,
            reload=True,
            log_level="info",
            access_log=True,
        )
    except KeyboardInterrupt:
        print("\nServer stopped by user")


def main():
    """Main setup and run function"""
    print("Content Review API - Setup and Run")
    print("=" * 40)

    script_dir = Path(__file__).parent
    os.chdir(script_dir)
    print(f"Working directory: {script_dir}")

    if not setup_environment():
        print("Failed to setup environment")
        sys.exit(1)

    if not check_dependencies():
        sys.exit(1)

    start_server()


if __name__ == "__main__":
    main()
