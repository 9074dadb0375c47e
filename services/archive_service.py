# Archive packaging - bundle converted files into one ZIP download
import io
import logging
import warnings
import zipfile
from typing import Sequence

from services.errors import EmptyInputError
from services.models import ConvertedFile

logger = logging.getLogger(__name__)

ARCHIVE_NAME = "converted_images.zip"
ARCHIVE_MIMETYPE = "application/zip"


def package_all(files: Sequence[ConvertedFile]) -> bytes:
    """
    Write every converted file into one deflated ZIP under its name verbatim.
    Duplicate names are written as separate entries; extractors keep the last one.
    Raises EmptyInputError when there is nothing to package.
    """
    files = list(files)
    if not files:
        raise EmptyInputError("No converted files to download")

    out_zip_io = io.BytesIO()
    with warnings.catch_warnings():
        warnings.filterwarnings("ignore", message="Duplicate name", category=UserWarning)
        with zipfile.ZipFile(out_zip_io, "w", compression=zipfile.ZIP_DEFLATED) as zout:
            for converted in files:
                zout.writestr(converted.name, converted.data)

    logger.info("Packaged %d file(s) into archive (%d bytes)", len(files), out_zip_io.tell())
    return out_zip_io.getvalue()
