"""Shared fixtures: synthetic Cardboard Camera photos built with Pillow."""

import base64
import struct
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from cardboard2webvr.xmp import AB_XMP_EXTENDED_HEADER, AB_XMP_STANDARD_HEADER

NS_GIMAGE = "http://ns.google.com/photos/1.0/image/"
NS_DC = "http://purl.org/dc/elements/1.1/"
NS_XMP_NOTE = "http://ns.adobe.com/xmp/note/"

STR_GUID = "0123456789ABCDEF0123456789ABCDEF"


def strXmpPacket(
    mpStrAttr: dict[str, str] | None = None,
    strTitle: str | None = None,
    strDescription: str | None = None,
) -> str:
    """An XMP packet with attributes on one rdf:Description and optional dc fields."""

    strAttr = "".join(f' {strKey}="{strValue}"' for strKey, strValue in (mpStrAttr or {}).items())

    strBody = ""
    for strName, strValue in [("title", strTitle), ("description", strDescription)]:
        if strValue is not None:
            strBody += (
                f"<dc:{strName}><rdf:Alt>"
                f'<rdf:li xml:lang="x-default">{strValue}</rdf:li>'
                f"</rdf:Alt></dc:{strName}>"
            )

    return (
        '<?xpacket begin="\ufeff" id="W5M0MpCehiHzreSzNTczkc9d"?>'
        '<x:xmpmeta xmlns:x="adobe:ns:meta/">'
        '<rdf:RDF xmlns:rdf="http://www.w3.org/1999/02/22-rdf-syntax-ns#">'
        f'<rdf:Description rdf:about="" xmlns:GImage="{NS_GIMAGE}" '
        f'xmlns:dc="{NS_DC}" xmlns:xmpNote="{NS_XMP_NOTE}"{strAttr}>'
        f"{strBody}"
        "</rdf:Description>"
        "</rdf:RDF>"
        "</x:xmpmeta>"
        '<?xpacket end="w"?>'
    )


def lAbExtendedSegment(abPacket: bytes, cbChunk: int, strGuid: str = STR_GUID) -> list[bytes]:
    """Split abPacket into extended XMP APP1 payloads of at most cbChunk bytes."""

    lAb: list[bytes] = []
    for ib in range(0, len(abPacket), cbChunk):
        lAb.append(
            AB_XMP_EXTENDED_HEADER
            + strGuid.encode("ascii")
            + struct.pack(">II", len(abPacket), ib)
            + abPacket[ib:ib + cbChunk]
        )
    return lAb


def abJpegWithApp1(img: Image.Image, lAbApp1: list[bytes]) -> bytes:
    """Encode img as JPEG and splice the given APP1 payloads in after SOI."""

    bio = BytesIO()
    img.convert("RGB").save(bio, format="JPEG", quality=90)
    ab = bio.getvalue()
    assert ab[:2] == b"\xff\xd8"

    abSegments = b"".join(
        b"\xff\xe1" + struct.pack(">H", len(abApp1) + 2) + abApp1 for abApp1 in lAbApp1
    )
    return ab[:2] + abSegments + ab[2:]


def abJpeg(img: Image.Image) -> bytes:
    bio = BytesIO()
    img.convert("RGB").save(bio, format="JPEG", quality=90)
    return bio.getvalue()


@pytest.fixture
def makeCardboardJpeg():
    """Factory writing a cardboard photo: left eye as pixels, right eye in XMP.

    By default the right eye goes into extended XMP in several chunks,
    the way Cardboard Camera writes it, with its base64 padding removed.
    """

    def make(
        path: Path,
        imgLeft: Image.Image | None = None,
        imgRight: Image.Image | None = None,
        strTitle: str | None = None,
        strDescription: str | None = None,
        fExtended: bool = True,
        fStripPadding: bool = True,
        strPayload: str | None = None,
    ) -> Path:
        imgLeft = imgLeft or Image.new("RGB", (64, 48), (200, 30, 30))
        imgRight = imgRight or Image.new("RGB", (64, 48), (30, 30, 200))

        if strPayload is None:
            strPayload = base64.b64encode(abJpeg(imgRight)).decode("ascii")
            if fStripPadding:
                strPayload = strPayload.rstrip("=")

        mpStrPayloadAttr = {"GImage:Mime": "image/jpeg", "GImage:Data": strPayload}

        if fExtended:
            strStandard = strXmpPacket(
                {"xmpNote:HasExtendedXMP": STR_GUID},
                strTitle=strTitle,
                strDescription=strDescription,
            )
            abExtended = strXmpPacket(mpStrPayloadAttr).encode("utf-8")
            lAbApp1 = [AB_XMP_STANDARD_HEADER + strStandard.encode("utf-8")]
            lAbApp1 += lAbExtendedSegment(abExtended, cbChunk=700)
        else:
            strStandard = strXmpPacket(
                mpStrPayloadAttr,
                strTitle=strTitle,
                strDescription=strDescription,
            )
            lAbApp1 = [AB_XMP_STANDARD_HEADER + strStandard.encode("utf-8")]

        path.write_bytes(abJpegWithApp1(imgLeft, lAbApp1))
        return path

    return make


@pytest.fixture
def pathPlainJpeg(tmp_path: Path) -> Path:
    """An ordinary JPEG with no XMP at all."""

    path = tmp_path / "plain.jpg"
    Image.new("RGB", (64, 48), (90, 90, 90)).save(path, format="JPEG")
    return path
