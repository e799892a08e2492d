"""Image compositing for the left/right eye and preview images.

The "equirectangular" output is not a projection. The source photo is
drawn centered on a black 2:1 canvas of the same width, so a source
taller than half its width is clipped top and bottom, and a shorter one
gets black bars. The viewer maps this canvas onto a sphere as-is.
"""

from io import BytesIO
from pathlib import Path

from PIL import Image

from .errors import DecodeError, EncodeError

N_JPEG_QUALITY = 90

# Pillow format name used for all generated images.

STR_FORMAT_OUTPUT = "JPEG"


def imgFromBytes(ab: bytes, pathSource: Path | None = None) -> Image.Image:
    """Decode an in-memory encoded image (e.g. the embedded right eye)."""

    try:
        img = Image.open(BytesIO(ab))
        img.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as err:
        raise DecodeError(f"embedded image is not decodable: {err}", pathSource) from err
    return img


def imgFromPath(path: Path) -> Image.Image:
    """Decode an image file fully into memory."""

    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as err:
        raise DecodeError(f"image is not decodable: {err}", path) from err


def imgToEquirectangular(img: Image.Image) -> Image.Image:
    """Center img on a black canvas of size (width, width // 2)."""

    dxCanvas = img.width
    dyCanvas = img.width // 2

    imgCanvas = Image.new("RGB", (dxCanvas, dyCanvas), (0, 0, 0))

    # Offsets are negative (clip) when the source is taller than the canvas,
    # positive (pad) when shorter. Both truncate toward zero.

    xOffset = int((dxCanvas - img.width) / 2)
    yOffset = int((dyCanvas - img.height) / 2)

    imgCanvas.paste(img.convert("RGB"), (xOffset, yOffset))
    return imgCanvas


def imgToPreview(img: Image.Image, nSize: int) -> Image.Image:
    """Crop a centered square of side img.height and resize it to nSize x nSize.

    The square always uses the height as its side. For a portrait source
    the crop box extends past the left and right edges; that area is black.
    """

    if nSize <= 0:
        raise ValueError(f"preview size must be positive, got {nSize}")

    nSide = img.height
    xLeft = img.width // 2 - nSide // 2

    imgSquare = img.convert("RGB").crop((xLeft, 0, xLeft + nSide, nSide))
    return imgSquare.resize((nSize, nSize), Image.Resampling.BILINEAR)


def abEncodeJpeg(img: Image.Image, nQuality: int = N_JPEG_QUALITY) -> bytes:
    """Encode img as JPEG bytes."""

    _checkEncoderAvailable()

    bio = BytesIO()
    img.convert("RGB").save(bio, format=STR_FORMAT_OUTPUT, quality=nQuality)
    return bio.getvalue()


def saveJpeg(img: Image.Image, pathOutput: Path, nQuality: int = N_JPEG_QUALITY) -> Path:
    """Encode img as JPEG and write it to pathOutput. Returns the output path."""

    pathOutput.write_bytes(abEncodeJpeg(img, nQuality))
    return pathOutput


def _checkEncoderAvailable() -> None:
    """Missing JPEG support is a configuration problem, never a per-file one."""

    Image.init()
    if STR_FORMAT_OUTPUT not in Image.SAVE:
        raise EncodeError(
            f"no {STR_FORMAT_OUTPUT} encoder available in this Pillow installation"
        )
