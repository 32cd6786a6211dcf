#!/usr/bin/env python3
"""
LiveShop Backend Runner
=======================

Usage:
    python run_app.py                    # Development mode with auto-reload
    python run_app.py --mode prod        # Production mode
    python run_app.py --port 8001        # Custom port
    python run_app.py --init-db --seed   # Create tables and demo data, then serve
"""

import argparse
import asyncio
import os
import sys

def check_environment():
    """Report which configuration sources are present"""
    print("\nChecking environment...")

    if os.path.exists(".env"):
        print(".env file found")
    else:
        print(".env file not found, using defaults")

def prepare_database(seed: bool):
    """Create tables and optionally load demo data"""
    from liveshop.core.database import init_db, get_db_context
    from liveshop.core.seed import seed_demo_data

    async def _prepare():
        await init_db()
        if seed:
            async with get_db_context() as db:
                created = await seed_demo_data(db)
            print(f"Seeded {created} demo records")

    asyncio.run(_prepare())

def run_main_app(host="0.0.0.0", port=8000, reload=True, workers=1):
    """Run the FastAPI application"""
    print(f"\nStarting LiveShop API on {host}:{port}")
    print(f"API Docs: http://{host}:{port}/api/docs")
    print("\n" + "=" * 50)

    import uvicorn
    uvicorn.run(
        "liveshop.main:app",
        host=host,
        port=port,
        reload=reload,
        workers=1 if reload else workers,
        log_level="info"
    )

def main():
    from liveshop.core.config import settings

    parser = argparse.ArgumentParser(
        description="LiveShop Backend Runner",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "--mode",
        choices=["dev", "prod"],
        default="dev",
        help="Server mode (default: dev)"
    )
    parser.add_argument(
        "--host",
        default=settings.HOST,
        help=f"Host to bind to (default: {settings.HOST})"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help=f"Port to bind to (default: {settings.PORT})"
    )
    parser.add_argument(
        "--no-reload",
        action="store_true",
        help="Disable auto-reload"
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create database tables before starting"
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Load demo products and promo codes (implies --init-db)"
    )

    args = parser.parse_args()

    check_environment()

    if args.init_db or args.seed:
        prepare_database(args.seed)

    reload = not args.no_reload and args.mode != "prod"
    run_main_app(args.host, args.port, reload, settings.WORKERS)

    return 0

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nServer stopped by user")
        sys.exit(0)
