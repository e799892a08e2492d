"""Assembling the photo set and writing the generated site.

The photo set is a plain list owned by the caller. Entry 0 is always
the home entry; every photo processed afterward gets image ids from its
position in the list at the time it is added, so the order files are
processed in fixes the ids written to images.json and index.html.
"""

import html
import json
import shutil
from collections.abc import Collection
from pathlib import Path
from urllib.parse import quote

from PIL import Image

from .layout import G_SIZE_MAX_DEFAULT, R_IMAGE_FRACTION_DEFAULT, RadialSlot, lSlotLayout
from .photo import CardboardPhoto, extractPhoto, photoStart

STR_DIR_ASSETS = "assets"
STR_DIR_SCRIPTS = "scripts"
STR_FILENAME_TITLE = "title.txt"
STR_FILENAME_INDEX = "index.html"
STR_FILENAME_IMAGES = "images.json"
STR_FILENAME_START = "start.png"
STR_FILENAME_VIEWER_SCRIPT = "cardboard-webvr.js"

PATH_DIR_TEMPLATES = Path(__file__).parent / "templates"

# Preview images, in pixels.

N_PREVIEW_SIZE_DEFAULT = 1024

# Carousel geometry, in meters and degrees.

G_CAROUSEL_RADIUS = 2.0
DEG_CAROUSEL_RESERVED = 90.0
G_CAROUSEL_HEIGHT = 1.6
G_NAV_ORB_RADIUS = 0.1

# Home image dimensions, 2:1 like the photos.

DX_START_IMAGE = 2048
DY_START_IMAGE = 1024

# Browsers tend to run out of texture memory past this many entries.

C_PHOTO_WARN = 20


def newPhotoSet(strCaptionStart: str | None = None) -> list[CardboardPhoto]:
    """Start a photo set holding only the home entry."""

    return [photoStart(strCaptionStart) if strCaptionStart else photoStart()]


def lPathInput(pathInput: Path) -> list[Path]:
    """Files to process for an input path, in a stable order.

    A directory yields its regular files sorted by name (not recursive).
    A file yields itself.
    """

    if pathInput.is_dir():
        return sorted(path for path in pathInput.iterdir() if path.is_file())
    return [pathInput]


def fIsTitleFile(path: Path) -> bool:
    return path.name.lower() == STR_FILENAME_TITLE


def strTitleFromFile(path: Path) -> str:
    """First line of a title.txt file, which becomes the home caption."""

    with path.open(encoding="utf-8-sig") as file:
        return file.readline().strip()


def strOutputStem(pathInput: Path, setStrStemUsed: Collection[str] = ()) -> str:
    """Output name stem for an input file: its name without the last extension.

    setStrStemUsed holds the casefolded stems already taken in the assets
    folder. An input whose stem is taken (x.vr.jpg and x.vr.png) gets its
    extension folded into the stem, then a counter if that is taken too.
    """

    strStem = pathInput.stem
    if strStem.casefold() not in setStrStemUsed:
        return strStem

    strExt = pathInput.suffix.removeprefix(".")
    strBase = f"{strStem}_{strExt}" if strExt else strStem

    strStem = strBase
    nSuffix = 2
    while strStem.casefold() in setStrStemUsed:
        strStem = f"{strBase}_{nSuffix}"
        nSuffix += 1
    return strStem


def processPhoto(
    pathInput: Path,
    pathDirAssets: Path,
    lPhoto: list[CardboardPhoto],
    nPreviewSize: int = N_PREVIEW_SIZE_DEFAULT,
    fEquirectangular: bool = True,
) -> CardboardPhoto:
    """Extract one cardboard photo, write its three images, and add it to lPhoto.

    Nothing is appended if any step fails, so a skipped file does not
    consume an image id, and any of its images already written are removed.
    """

    photo = extractPhoto(pathInput)
    photo.strStem = strOutputStem(
        pathInput, {photoOther.strStem.casefold() for photoOther in lPhoto if photoOther.strStem}
    )

    pathLeft = pathDirAssets / f"{photo.strStem}_left.jpg"
    pathRight = pathDirAssets / f"{photo.strStem}_right.jpg"
    pathPreview = pathDirAssets / f"{photo.strStem}_preview.jpg"

    try:
        photo.saveLeftPhoto(pathLeft, fEquirectangular)
        photo.saveRightPhoto(pathRight, fEquirectangular)
        photo.savePreview(pathPreview, nPreviewSize)
    except Exception:
        for pathOutput in [pathLeft, pathRight, pathPreview]:
            pathOutput.unlink(missing_ok=True)
        raise

    photo.assignImageIds(len(lPhoto))
    lPhoto.append(photo)
    return photo


def lPhotoWithImages(lPhoto: list[CardboardPhoto]) -> list[CardboardPhoto]:
    """The entries that have generated left and right images (all but the home entry)."""

    return [photo for photo in lPhoto if photo.pathLeftImage and photo.pathRightImage]


def writeImagesJson(lPhoto: list[CardboardPhoto], pathDirOutput: Path) -> Path:
    """Write the ordered manifest of all entries, home entry first."""

    pathOutput = pathDirOutput / STR_FILENAME_IMAGES
    pathOutput.write_text(
        json.dumps([photo.mpManifestEntry() for photo in lPhoto]),
        encoding="utf-8",
    )
    return pathOutput


def writeStartImage(pathDirAssets: Path) -> Path:
    """Write the plain black home image shown behind the welcome placard."""

    pathOutput = pathDirAssets / STR_FILENAME_START
    Image.new("RGB", (DX_START_IMAGE, DY_START_IMAGE), (0, 0, 0)).save(pathOutput, format="PNG")
    return pathOutput


def writeViewerScript(pathDirOutput: Path) -> Path:
    """Copy the A-Frame components index.html relies on into scripts/."""

    pathDirScripts = pathDirOutput / STR_DIR_SCRIPTS
    pathDirScripts.mkdir(parents=True, exist_ok=True)

    pathOutput = pathDirScripts / STR_FILENAME_VIEWER_SCRIPT
    shutil.copyfile(PATH_DIR_TEMPLATES / STR_FILENAME_VIEWER_SCRIPT, pathOutput)
    return pathOutput


def lSlotForPhotos(
    cPhoto: int,
    gRadius: float = G_CAROUSEL_RADIUS,
    degReserved: float = DEG_CAROUSEL_RESERVED,
) -> list[RadialSlot]:
    """Carousel slots for cPhoto previews.

    A lone photo is laid out as the first of two slots, at the edge of the
    reserved arc; the layout itself is undefined for fewer than two.
    """

    if cPhoto == 0:
        return []

    lSlot = lSlotLayout(
        max(cPhoto, 2),
        gRadius,
        degReserved,
        rImageFraction=R_IMAGE_FRACTION_DEFAULT,
        gSizeMax=G_SIZE_MAX_DEFAULT,
    )
    return lSlot[:cPhoto]


def strAssetMarkup(lPhoto: list[CardboardPhoto]) -> str:
    """<img> asset tags, previews first so they load before the full images."""

    lStrPreview: list[str] = []
    lStrEye: list[str] = []

    for photo in lPhotoWithImages(lPhoto):
        lStrEye.append(_strImgTag(photo.strLeftImageId, photo.pathLeftImage))
        lStrEye.append(_strImgTag(photo.strRightImageId, photo.pathRightImage))
        if photo.pathPreviewImage:
            lStrPreview.append(_strImgTag(photo.strPreviewImageId, photo.pathPreviewImage))

    return "".join(lStrPreview + lStrEye)


def strCarouselMarkup(
    lPhoto: list[CardboardPhoto],
    gRadius: float = G_CAROUSEL_RADIUS,
    degReserved: float = DEG_CAROUSEL_RESERVED,
) -> str:
    """One preview image, navigation orb and hit plane per photo."""

    lPhotoShown = lPhotoWithImages(lPhoto)
    lSlot = lSlotForPhotos(len(lPhotoShown), gRadius, degReserved)

    lStr: list[str] = []
    for iPhoto, (photo, slot) in enumerate(zip(lPhotoShown, lSlot)):
        strX = _strNumber(slot.gX)
        strZ = _strNumber(slot.gZ)
        strYaw = _strNumber(slot.degYaw)
        strEdge = _strNumber(slot.gEdge)
        strOrbY = _strNumber(G_CAROUSEL_HEIGHT - slot.gEdge / 2 - G_NAV_ORB_RADIUS)

        lStr.append(
            f'\r\n      <a-image class="welcome" position="{strX} {_strNumber(G_CAROUSEL_HEIGHT)} {strZ}" '
            f'rotation="0 {strYaw} 0" src="{photo.strPreviewImageId}" '
            f'width="{strEdge}" height="{strEdge}" ></a-image>'
        )
        lStr.append(
            f'\r\n      <a-sphere cursor-listener-nav="imageIndex: {iPhoto + 1}" '
            f'class="welcome cursor-active" radius="{_strNumber(G_NAV_ORB_RADIUS)}" '
            f'position="{strX} {strOrbY} {strZ}" color="silver"></a-sphere>'
        )
        lStr.append(
            f'\r\n      <a-plane cursor-visible class="welcome cursor-active" '
            f'position="{strX} {strOrbY} {strZ}" rotation="0 {strYaw} 0" '
            f'width="{strEdge}" height="{_strNumber(G_NAV_ORB_RADIUS * 2)}" '
            f'material="opacity: 0.0; transparent: true"></a-plane>'
        )

    return "".join(lStr)


def writeIndexHtml(
    lPhoto: list[CardboardPhoto],
    pathDirOutput: Path,
    gRadius: float = G_CAROUSEL_RADIUS,
    degReserved: float = DEG_CAROUSEL_RESERVED,
) -> Path:
    """Fill the index.html template with the asset and carousel markup."""

    strHtml = (PATH_DIR_TEMPLATES / "index.html").read_text(encoding="utf-8")
    strWelcome = (PATH_DIR_TEMPLATES / "welcome.txt").read_text(encoding="utf-8")

    # The welcome text goes into a single-line attribute.

    strWelcome = strWelcome.strip().replace("\r\n", "\\n").replace("\n", "\\n")

    strHtml = strHtml.replace('<div id="asset-placeholder"></div>', strAssetMarkup(lPhoto))
    strHtml = strHtml.replace(
        '<div id="carousel-placeholder"></div>',
        strCarouselMarkup(lPhoto, gRadius, degReserved),
    )
    strHtml = strHtml.replace("WELCOME-PLACEHOLDER", html.escape(strWelcome))
    strHtml = strHtml.replace("PLACARD-PLACEHOLDER", html.escape(lPhoto[0].strCaption))

    pathOutput = pathDirOutput / STR_FILENAME_INDEX
    pathOutput.write_text(strHtml, encoding="utf-8")
    return pathOutput


def _strImgTag(strId: str, pathImage: Path | None) -> str:
    strSrc = quote(f"{STR_DIR_ASSETS}/{pathImage.name}")
    return f'\r\n          <img id="{strId.removeprefix("#")}" src="{strSrc}">'


def _strNumber(g: float) -> str:
    """Compact decimal for markup attributes: 2.0 -> '2', -0.0 -> '0'."""

    return f"{g + 0.0:.15g}"
