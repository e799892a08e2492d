"""Cardboard Camera photos: extraction of the embedded right eye and caption.

A Cardboard Camera photo is an ordinary JPEG (the left eye) whose XMP
metadata carries the right-eye JPEG as a base64 string in GImage:Data.
The presence of that property is the only test for whether a file is a
cardboard photo; the extension is not consulted.
"""

import base64
import binascii
import re
import shutil
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

from .compositor import (
    imgFromBytes,
    imgFromPath,
    imgToEquirectangular,
    imgToPreview,
    saveJpeg,
)
from .errors import CorruptPayloadError, DecodeError, NotStereoPhotoError
from .xmp import XmpDirectory, lXmpDirectoryFromImage, strPropertyFromSources

# -- XMP property keys ---------------------------------------------------------

STR_KEY_RIGHT_EYE = "GImage:Data"
STR_KEY_RIGHT_EYE_MIME = "GImage:Mime"
STR_KEY_TITLE = "dc:title[1]"
STR_KEY_DESCRIPTION = "dc:description[1]"

# Cardboard Camera names its files "<name>.vr.jpg".

STR_SUFFIX_CARDBOARD = ".vr"

# The home entry shown before any photo.

STR_ID_START = "#start"
STR_CAPTION_START = "Welcome"


@dataclass
class CardboardPhoto:
    """One photo of the set, plus the outputs generated from it.

    The output paths are filled in by the save methods, and the ids by
    assignImageIds once the photo has its place in the set. The start
    entry has no source, payload or output paths, only ids and a caption.
    """

    strCaption: str
    pathSource: Path | None = None
    abRightEye: bytes | None = None
    strRightEyeMime: str | None = None  # Declared payload type, informational
    strCaptionSource: str | None = None  # XMP key or "filename"
    strStem: str = ""  # Output file name stem, unique within the set

    pathLeftImage: Path | None = None
    pathRightImage: Path | None = None
    pathPreviewImage: Path | None = None

    strLeftImageId: str = ""
    strRightImageId: str = ""
    strPreviewImageId: str = ""

    def saveLeftPhoto(self, pathOutput: Path, fEquirectangular: bool = True) -> Path:
        """Write the left eye (the source file's own image)."""

        if fEquirectangular:
            saveJpeg(imgToEquirectangular(imgFromPath(self._pathSourceRequired())), pathOutput)
        else:
            shutil.copyfile(self._pathSourceRequired(), pathOutput)

        self.pathLeftImage = pathOutput
        return pathOutput

    def saveRightPhoto(self, pathOutput: Path, fEquirectangular: bool = True) -> Path:
        """Write the right eye decoded from the XMP payload."""

        if self.abRightEye is None:
            raise NotStereoPhotoError("photo has no right-eye payload", self.pathSource)

        if fEquirectangular:
            img = imgFromBytes(self.abRightEye, self.pathSource)
            saveJpeg(imgToEquirectangular(img), pathOutput)
        else:
            pathOutput.write_bytes(self.abRightEye)

        self.pathRightImage = pathOutput
        return pathOutput

    def savePreview(self, pathOutput: Path, nSize: int) -> Path:
        """Write a square nSize preview cropped from the left eye."""

        saveJpeg(imgToPreview(imgFromPath(self._pathSourceRequired()), nSize), pathOutput)
        self.pathPreviewImage = pathOutput
        return pathOutput

    def assignImageIds(self, nImage: int) -> None:
        """Set the markup ids from the photo's position in the set."""

        strId = f"#image{nImage}"
        self.strLeftImageId = f"{strId}-left"
        self.strRightImageId = f"{strId}-right"
        self.strPreviewImageId = f"{strId}-preview"

    def mpManifestEntry(self) -> dict[str, str]:
        """The entry written to images.json for this photo."""

        mp = {
            "leftImageId": self.strLeftImageId,
            "rightImageId": self.strRightImageId,
            "caption": self.strCaption,
        }
        if self.strPreviewImageId:
            mp["previewImageId"] = self.strPreviewImageId
        return mp

    def _pathSourceRequired(self) -> Path:
        if self.pathSource is None:
            raise ValueError(f"photo {self.strCaption!r} has no source file")
        return self.pathSource


def photoStart(strCaption: str = STR_CAPTION_START) -> CardboardPhoto:
    """Build the home entry that always comes first in the set."""

    return CardboardPhoto(
        strCaption=strCaption,
        strLeftImageId=STR_ID_START,
        strRightImageId=STR_ID_START,
    )


def extractPhoto(path: Path) -> CardboardPhoto:
    """Read a cardboard photo's right-eye payload and caption.

    Raises NotStereoPhotoError if no XMP packet carries a right-eye
    payload, CorruptPayloadError if the payload is not base64, and
    DecodeError if the file cannot be opened as an image at all.
    """

    try:
        with Image.open(path) as img:
            lDir = lXmpDirectoryFromImage(img)
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as err:
        raise DecodeError(f"cannot read image metadata: {err}", path) from err

    strPayload = strPropertyFromSources(lDir, STR_KEY_RIGHT_EYE)
    if strPayload is None:
        raise NotStereoPhotoError(
            "file does not contain cardboard metadata (no GImage:Data)", path
        )

    strCaption, strCaptionSource = _tupCaptionResolve(lDir, path)

    return CardboardPhoto(
        strCaption=strCaption,
        strCaptionSource=strCaptionSource,
        pathSource=path,
        abRightEye=abDecodeRightEye(strPayload, path),
        strRightEyeMime=strPropertyFromSources(lDir, STR_KEY_RIGHT_EYE_MIME),
    )


def strRepairBase64Padding(str64: str) -> str:
    """Append '=' until the length is a multiple of 4.

    Some producers drop the trailing padding.
    """

    nMod4 = len(str64) % 4
    if nMod4:
        str64 += "=" * (4 - nMod4)
    return str64


def abDecodeRightEye(strPayload: str, pathSource: Path | None = None) -> bytes:
    """Decode a base64 payload, repairing missing padding first."""

    # Line-wrapped payloads are accepted; any other stray character is corruption.

    str64 = strRepairBase64Padding(re.sub(r"\s+", "", strPayload))

    try:
        return base64.b64decode(str64, validate=True)
    except (binascii.Error, ValueError) as err:
        raise CorruptPayloadError(f"right-eye payload is not valid base64: {err}", pathSource) from err


def strCaptionFromFilename(path: Path) -> str:
    """File name without extension, and without a trailing '.vr'."""

    strCaption = path.stem
    if strCaption.endswith(STR_SUFFIX_CARDBOARD):
        strCaption = strCaption[: -len(STR_SUFFIX_CARDBOARD)]

    # A file named just ".vr.jpg" still needs a caption.

    return strCaption if strCaption.strip() else path.name


def _tupCaptionResolve(lDir: list[XmpDirectory], path: Path) -> tuple[str, str]:
    """Title, then description, then the file name. Returns (caption, source)."""

    for strKey in [STR_KEY_TITLE, STR_KEY_DESCRIPTION]:
        strValue = strPropertyFromSources(lDir, strKey)
        if strValue is not None:
            return strValue.strip(), strKey

    return strCaptionFromFilename(path), "filename"
