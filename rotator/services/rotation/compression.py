import gzip
import logging
import os
import shutil
from pathlib import Path

from rotator.core.exceptions import CompressionError


def compress_gzip(source: Path) -> Path:
    """
    Compress ``source`` to ``<source>.gz`` and delete ``source``.

    The source is only removed after the archive is fully written. On failure
    the source is left in place and CompressionError is raised.
    """
    source = Path(source)
    target = source.with_name(source.name + ".gz")

    try:
        with open(source, "rb") as f_in, gzip.open(target, "wb") as f_out:
            shutil.copyfileobj(f_in, f_out)
        shutil.copystat(source, target)
        os.remove(source)
    except OSError as e:
        raise CompressionError(str(source), str(e)) from e

    logging.debug(f"Compressed {source} -> {target}")
    return target
