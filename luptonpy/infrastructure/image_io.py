import os
import tempfile

import imageio.v3 as iio
import numpy as np
import tifffile

from luptonpy.core.errors import InvalidInputError
from luptonpy.core.types import ImageBuffer
from luptonpy.core.validation import ensure_image
from luptonpy.kernel.image.logic import to_float32_image
from luptonpy.kernel.system.logging import get_logger

logger = get_logger(__name__)

TIFF_EXTENSIONS = {".tif", ".tiff"}
SUPPORTED_EXTENSIONS = TIFF_EXTENSIONS | {".png", ".jpg", ".jpeg", ".exr"}


def load_image(file_path: str) -> ImageBuffer:
    """
    Reads an image as float32 (H, W, C). Integer data is normalized to [0, 1],
    float data is kept linear.
    """
    ext = os.path.splitext(file_path)[1].lower()
    try:
        if ext in TIFF_EXTENSIONS:
            data = tifffile.imread(file_path)
        else:
            data = iio.imread(file_path)
    except tifffile.TiffFileError as e:
        raise InvalidInputError(f"Cannot read {os.path.basename(file_path)}: {e}") from e

    data = np.asarray(data)
    # Planar (C, H, W) TIFFs
    if data.ndim == 3 and data.shape[0] in (3, 4) and data.shape[2] not in (3, 4):
        data = np.moveaxis(data, 0, -1)

    return ensure_image(to_float32_image(data))


class TiffImageSink:
    """
    Writes 32-bit float RGB TIFFs into a directory.
    Files appear only once completely written.
    """

    def __init__(self, output_dir: str):
        self.output_dir = output_dir

    def write(self, name: str, image: ImageBuffer) -> str:
        os.makedirs(self.output_dir, exist_ok=True)
        out_path = os.path.join(self.output_dir, f"{name}.tif")

        fd, tmp_path = tempfile.mkstemp(prefix=".partial_", suffix=".tif", dir=self.output_dir)
        os.close(fd)
        try:
            tifffile.imwrite(
                tmp_path,
                np.ascontiguousarray(image, dtype=np.float32),
                photometric="rgb",
            )
            os.replace(tmp_path, out_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        logger.info(f"Wrote {out_path}")
        return out_path
