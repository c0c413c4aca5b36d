import logging
import os
import time

import config

logger = logging.getLogger(__name__)

URL_PREFIX = "/uploads"


def store_attachment(data: bytes, original_name: str) -> str:
    """Write ``data`` under the upload directory and return its public path.

    Files are named ``<epoch-ms>-<basename>``. On serverless hosts the
    directory is ephemeral.
    """
    base = os.path.basename((original_name or "").replace("\\", "/")) or "file"
    filename = f"{int(time.time() * 1000)}-{base}"
    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    with open(os.path.join(config.UPLOAD_DIR, filename), "wb") as fh:
        fh.write(data)
    logger.info("Stored attachment %s (%d bytes)", filename, len(data))
    return f"{URL_PREFIX}/{filename}"
