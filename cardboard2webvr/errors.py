"""Error kinds raised while converting cardboard photos."""

from pathlib import Path


class CardboardError(Exception):
    """Base class for all conversion errors.

    pathSource is the input file the error relates to, if any.
    """

    strKind = "error"

    def __init__(self, strMessage: str, pathSource: Path | None = None) -> None:
        super().__init__(strMessage)
        self.pathSource = pathSource


class NotStereoPhotoError(CardboardError, ValueError):
    """No XMP directory carries a right-eye image payload."""

    strKind = "not a stereo photo"


class CorruptPayloadError(CardboardError, ValueError):
    """The right-eye payload is not valid base64, even after padding repair."""

    strKind = "corrupt payload"


class DecodeError(CardboardError, ValueError):
    """Source file or embedded bytes are not a decodable image."""

    strKind = "decode error"


class EncodeError(CardboardError, RuntimeError):
    """No encoder is available for the output image format."""

    strKind = "encode error"


class InvalidLayoutInputError(CardboardError, ValueError):
    """Radial layout called with an item count, radius or angle out of domain."""

    strKind = "invalid layout input"
