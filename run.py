#!/usr/bin/env python3
"""
QuietPlay Runner - Starts the playback ticker and the HTTP API
"""

import atexit
import os

from waitress import serve

from quietplay.app import app
from quietplay.config import load_config
from quietplay.core.engine import start_playback_engine, stop_playback_engine
from quietplay.utils.logger import log_shutdown, log_startup, setup_logger

if __name__ == "__main__":
    logger = setup_logger("runner")
    config = load_config()

    port = int(os.environ.get("PORT", config.get("port", 3001)))
    debug_mode = config.get("debug", False)
    host = config.get("host", "0.0.0.0")

    log_startup("runner")
    logger.info(f"🚀 Starting QuietPlay on {host}:{port}")
    logger.info(f"🌍 Environment: {config.get('environment', 'unknown')}")
    logger.info(f"🔧 Debug mode: {debug_mode}")

    start_playback_engine()
    logger.info("⏱️ Playback ticker started")

    def _shutdown() -> None:
        stop_playback_engine()
        log_shutdown(logger, "QuietPlay")

    atexit.register(_shutdown)

    if debug_mode:
        app.run(host=host, port=port, debug=True, use_reloader=False)
    else:
        threads = int(os.environ.get("QUIETPLAY_WAITRESS_THREADS", "4"))
        backlog = int(os.environ.get("QUIETPLAY_WAITRESS_BACKLOG", "128"))
        logger.info(f"🍽️ Using Waitress WSGI server (threads={threads}, backlog={backlog})")
        serve(
            app,
            host=host,
            port=port,
            threads=threads,
            backlog=backlog
        )
