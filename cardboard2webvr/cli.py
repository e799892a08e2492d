"""Command-line interface for cardboard2webvr."""

import argparse
import sys
from pathlib import Path

from . import site
from .errors import CardboardError, EncodeError, InvalidLayoutInputError
from .photo import CardboardPhoto


def buildParser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cardboard2webvr",
        description="Generate a WebVR photo site from Cardboard Camera photos.",
    )

    parser.add_argument(
        "pathInput",
        metavar="INPUT",
        type=Path,
        help="A Cardboard Camera photo, or a folder of them (a title.txt there sets the welcome placard).",
    )

    parser.add_argument(
        "pathDirOutput",
        metavar="OUTPUT",
        type=Path,
        help="Folder the generated site is written to.",
    )

    parser.add_argument(
        "--preview-size",
        dest="nPreviewSize",
        type=int,
        default=site.N_PREVIEW_SIZE_DEFAULT,
        help=f"Width and height of the carousel preview images in pixels (default: {site.N_PREVIEW_SIZE_DEFAULT}).",
    )

    parser.add_argument(
        "--radius",
        dest="gRadius",
        type=float,
        default=site.G_CAROUSEL_RADIUS,
        help=f"Carousel radius in meters (default: {site.G_CAROUSEL_RADIUS}).",
    )

    parser.add_argument(
        "--reserved-angle",
        dest="degReserved",
        type=float,
        default=site.DEG_CAROUSEL_RESERVED,
        help=(
            "Angle in degrees kept free at the front of the carousel for the "
            f"welcome placard (default: {site.DEG_CAROUSEL_RESERVED})."
        ),
    )

    parser.add_argument(
        "--flat",
        dest="fEquirectangular",
        action="store_false",
        default=True,
        help="Write the left/right images as-is instead of padding them onto a 2:1 canvas.",
    )

    parser.add_argument(
        "-k",
        "--keep-going",
        dest="fKeepGoing",
        action="store_true",
        default=False,
        help="Skip files that fail to convert instead of stopping at the first one.",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        dest="fVerbose",
        action="store_true",
        default=False,
        help="Print metadata details for each photo.",
    )

    return parser


def _printPhotoInfo(photo: CardboardPhoto) -> None:
    """Print metadata summary for verbose mode."""

    print(f"  Caption: {photo.strCaption!r} (from {photo.strCaptionSource})", file=sys.stderr)
    if photo.abRightEye is not None:
        strMime = photo.strRightEyeMime or "?"
        print(f"  Right eye payload: {len(photo.abRightEye)} bytes, {strMime}", file=sys.stderr)
    for strLabel, path in [
        ("Left", photo.pathLeftImage),
        ("Right", photo.pathRightImage),
        ("Preview", photo.pathPreviewImage),
    ]:
        if path:
            print(f"  {strLabel}: {path}", file=sys.stderr)


def _printError(err: CardboardError, pathInput: Path) -> None:
    pathError = err.pathSource or pathInput
    print(f"Error: {err.strKind}: {pathError}: {err}", file=sys.stderr)


def main(lStrArg: list[str] | None = None) -> int:
    parser = buildParser()
    args = parser.parse_args(lStrArg)

    if not args.pathInput.exists():
        print(f"Error: input {args.pathInput} does not exist.", file=sys.stderr)
        return 1

    if args.nPreviewSize <= 0:
        print("Error: --preview-size must be positive.", file=sys.stderr)
        return 1

    # Validate the carousel geometry before any photo is converted.

    try:
        site.lSlotForPhotos(2, args.gRadius, args.degReserved)
    except InvalidLayoutInputError as err:
        print(f"Error: {err.strKind}: {err}", file=sys.stderr)
        return 1

    # Create the output directory structure.

    pathDirOutput: Path = args.pathDirOutput
    pathDirAssets = pathDirOutput / site.STR_DIR_ASSETS
    pathDirAssets.mkdir(parents=True, exist_ok=True)

    lPhoto = site.newPhotoSet()

    if args.pathInput.is_dir():
        print(f"Processing files in folder {args.pathInput}.")

    cError = 0

    for pathInput in site.lPathInput(args.pathInput):
        if args.pathInput.is_dir() and site.fIsTitleFile(pathInput):
            lPhoto[0].strCaption = site.strTitleFromFile(pathInput) or lPhoto[0].strCaption
            continue

        print(f"Processing file {pathInput}.")

        try:
            photo = site.processPhoto(
                pathInput,
                pathDirAssets,
                lPhoto,
                nPreviewSize=args.nPreviewSize,
                fEquirectangular=args.fEquirectangular,
            )
        except EncodeError as err:
            _printError(err, pathInput)
            return 1
        except CardboardError as err:
            _printError(err, pathInput)
            if not args.fKeepGoing:
                return 1
            cError += 1
            continue

        if photo.strStem != pathInput.stem:
            print(
                f"Warning: {pathInput.name} shares its output name with an earlier file; "
                f"writing {photo.strStem}_*.jpg instead.",
                file=sys.stderr,
            )

        if args.fVerbose:
            _printPhotoInfo(photo)

    site.writeStartImage(pathDirAssets)

    for pathOutput in [
        site.writeIndexHtml(lPhoto, pathDirOutput, args.gRadius, args.degReserved),
        site.writeImagesJson(lPhoto, pathDirOutput),
        site.writeViewerScript(pathDirOutput),
    ]:
        print(f"Saving output file {pathOutput}")

    print(f"Results are in {pathDirOutput}")

    cPhoto = len(lPhoto)
    if cPhoto > site.C_PHOTO_WARN:
        print(
            f"\nWarning: a large number of photos (> {site.C_PHOTO_WARN}) may cause "
            f"instability in some browsers.\n"
            f"  {cPhoto} photos were processed.\n"
            f"  Consider running again with a smaller set of photos.",
            file=sys.stderr,
        )

    if cError > 0:
        print(f"{cError} error(s).", file=sys.stderr)

    return 1 if cError > 0 else 0


if __name__ == "__main__":
    sys.exit(main())
