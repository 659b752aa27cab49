#!/usr/bin/env python3
"""
Backend startup wrapper for the challenge engine API.
"""
import sys
import os

# Add workspace to path
workspace_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, workspace_root)


def main() -> None:
    import uvicorn

    from stackr.core.config import settings

    print("[Stackr] Starting challenge engine")
    print(f"[Stackr] Server: http://{settings.HOST}:{settings.PORT}")
    print("[Stackr] Press CTRL+C to stop")
    try:
        uvicorn.run(
            "stackr.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=False,
            log_level="info",
            access_log=settings.ENV != "production",
        )
    except KeyboardInterrupt:
        print("\n[Stackr] Shutting down...")
        sys.exit(0)


if __name__ == "__main__":
    main()
