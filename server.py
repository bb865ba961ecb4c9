"""
Development server for the Wheel of Destiny API.
Run: python server.py (HOST, PORT and LOG_LEVEL come from the environment)
"""

import logging

import uvicorn

from wheel_of_destiny.config import HOST, LOG_LEVEL, PORT

if __name__ == "__main__":
    logging.basicConfig(
        level=LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print(f"Serving at http://{HOST}:{PORT}")
    print(f"Open http://{HOST}:{PORT}/docs to explore the API")
    print("Press Ctrl+C to stop")
    uvicorn.run("wheel_of_destiny.api.main:app", host=HOST, port=PORT, log_level=LOG_LEVEL.lower())
