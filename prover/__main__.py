# prover/__main__.py
"""
Run the HTTP server:

    python -m prover

HOST / PORT come from the environment (default 127.0.0.1:8080).
"""
import os

import uvicorn


def main():
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8080"))
    uvicorn.run("prover.app:app", host=host, port=port, log_level=os.getenv("LOG_LEVEL", "info").lower())


if __name__ == "__main__":
    main()
