"""Console entry point: serve the app with uvicorn."""

from __future__ import annotations

import os

import uvicorn


def run() -> None:
    uvicorn.run(
        "gitdeploy.app:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        # the logging setup in create_app owns the root logger
        log_config=None,
    )


if __name__ == "__main__":
    run()
