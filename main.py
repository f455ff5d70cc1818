"""
main.py: Server launcher and entry point.

Run this file to start the API server and open the interactive docs:

    python main.py

The front-desk dashboard is a separate Streamlit app:

    streamlit run dashboard/app.py

This file does NOT contain application logic. See app.py for the FastAPI
application, service wiring, and startup sequence.
"""

from __future__ import annotations

import os
import threading
import time
import webbrowser

import uvicorn


HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))
DOCS_URL = f"http://{HOST}:{PORT}/docs"


def _open_browser_after_startup(delay_seconds: float = 2.0) -> None:
    """
    Open the API docs in the default browser after a short delay.

    The delay lets uvicorn restore the snapshot before the first request.
    """
    time.sleep(delay_seconds)
    print(f"\n  Opening API docs → {DOCS_URL}\n")
    webbrowser.open(DOCS_URL)


def main() -> None:
    """Start the pet hotel API server."""
    print("=" * 60)
    print("  Pet Hotel | Front Desk API")
    print("=" * 60)
    print(f"  Server   : http://{HOST}:{PORT}")
    print(f"  API docs : {DOCS_URL}")
    print("  Dashboard: streamlit run dashboard/app.py")
    print("=" * 60)
    print("  Press CTRL+C to stop\n")

    if os.getenv("OPEN_BROWSER", "1") != "0":
        browser_thread = threading.Thread(
            target=_open_browser_after_startup,
            daemon=True,
        )
        browser_thread.start()

    uvicorn.run(
        "app:app",
        host=HOST,
        port=PORT,
        reload=os.getenv("RELOAD", "1") != "0",
        log_level="info",
    )


if __name__ == "__main__":
    main()
