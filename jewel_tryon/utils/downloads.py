# utils/downloads.py
import logging
import os
import urllib.request
from pathlib import Path

logger = logging.getLogger(__name__)


def is_remote(source):
    return str(source).startswith(("http://", "https://"))


def download_file(url, directory):
    """Download `url` into `directory` if not present. Returns the local path."""
    directory = Path(directory)
    path = directory / url.split("?", 1)[0].rsplit("/", 1)[-1]
    os.makedirs(directory, exist_ok=True)
    if not path.exists():
        logger.info("Downloading %s to %s...", url, path)
        tmp = path.with_suffix(path.suffix + ".part")
        try:
            urllib.request.urlretrieve(url, tmp)
            tmp.replace(path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise
        logger.info("Download complete.")
    return path


def local_path(source, directory):
    """Local file for a path or URL, downloading remote sources once."""
    if is_remote(source):
        return download_file(source, directory)
    return Path(source)
