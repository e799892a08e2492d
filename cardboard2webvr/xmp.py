"""XMP metadata discovery and property lookup.

A single image file can carry several XMP packets: the standard packet
in one JPEG APP1 segment, plus "extended XMP" split across any number
of further APP1 segments and reassembled by GUID. Cardboard Camera
stores the right-eye image (GImage:Data) in the extended packet because
it is far larger than one segment can hold.

Each packet is flattened into an XmpDirectory, a flat map of
"prefix:name" keys to string values. Language alternatives and arrays
are keyed with a 1-based index, e.g. "dc:title[1]".
"""

import struct
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Iterable, Protocol

from PIL import Image

# -- APP1 segment signatures ---------------------------------------------------

AB_XMP_STANDARD_HEADER = b"http://ns.adobe.com/xap/1.0/\x00"
AB_XMP_EXTENDED_HEADER = b"http://ns.adobe.com/xmp/extension/\x00"

# Extended XMP chunk header: 32-byte GUID, 4-byte total length, 4-byte offset.

CB_EXTENDED_GUID = 32
CB_EXTENDED_PREAMBLE = CB_EXTENDED_GUID + 8

# Image.info keys under which Pillow exposes XMP for non-JPEG formats.

g_lStrInfoKeyXmp: list[str] = ["xmp", "XML:com.adobe.xmp"]

NS_RDF = "http://www.w3.org/1999/02/22-rdf-syntax-ns#"
g_setStrRdfContainer = {f"{{{NS_RDF}}}Alt", f"{{{NS_RDF}}}Seq", f"{{{NS_RDF}}}Bag"}


class PropertySource(Protocol):
    """Anything that can answer a keyed string property lookup."""

    def strProperty(self, strKey: str) -> str | None: ...


@dataclass
class XmpDirectory:
    """Flattened properties of one XMP packet."""

    strSource: str  # "standard", "extended <guid>" or "info"
    mpStrProperty: dict[str, str] = field(default_factory=dict)

    def strProperty(self, strKey: str) -> str | None:
        return self.mpStrProperty.get(strKey)


def strPropertyFromSources(lSource: Iterable[PropertySource], strKey: str) -> str | None:
    """Return the first non-blank value for strKey, checking sources in order.

    A source that has the key but only an empty or whitespace value is
    passed over in favor of later sources.
    """

    for source in lSource:
        strValue = source.strProperty(strKey)
        if strValue is not None and strValue.strip():
            return strValue
    return None


def lXmpDirectoryFromImage(img: Image.Image) -> list[XmpDirectory]:
    """Collect XMP directories from an opened image, in file order."""

    strLabel = Path(getattr(img, "filename", "") or "<image>").name
    lDir: list[XmpDirectory] = []

    applist = getattr(img, "applist", None)
    if applist is not None:
        lTupSourcePacket = _lTupSourcePacketFromApplist(applist, strLabel)
    else:
        lTupSourcePacket = _lTupSourcePacketFromInfo(img.info)

    for strSource, abPacket in lTupSourcePacket:
        mpStrProperty = _mpStrPropertyFromPacket(abPacket, strSource, strLabel)
        if mpStrProperty is not None:
            lDir.append(XmpDirectory(strSource=strSource, mpStrProperty=mpStrProperty))

    return lDir


def lXmpDirectoryFromPath(path: Path) -> list[XmpDirectory]:
    """Collect XMP directories from an image file path."""

    with Image.open(path) as img:
        return lXmpDirectoryFromImage(img)


# -- Private helpers -----------------------------------------------------------


def _lTupSourcePacketFromApplist(
    applist: list[tuple[str, bytes]],
    strLabel: str,
) -> list[tuple[str, bytes]]:
    """Pull standard and reassembled extended XMP packets out of JPEG APP1 segments."""

    lTupStandard: list[tuple[str, bytes]] = []

    # GUID -> {offset: chunk}. Dicts keep first-seen GUID order.

    mpGuidChunks: dict[bytes, dict[int, bytes]] = {}
    mpGuidCbTotal: dict[bytes, int] = {}

    for strMarker, abSegment in applist:
        if strMarker != "APP1":
            continue

        if abSegment.startswith(AB_XMP_STANDARD_HEADER):
            lTupStandard.append(("standard", abSegment[len(AB_XMP_STANDARD_HEADER):]))
            continue

        if not abSegment.startswith(AB_XMP_EXTENDED_HEADER):
            continue

        abBody = abSegment[len(AB_XMP_EXTENDED_HEADER):]
        if len(abBody) < CB_EXTENDED_PREAMBLE:
            print(
                f"Warning: truncated extended XMP segment in {strLabel}; ignored.",
                file=sys.stderr,
            )
            continue

        abGuid = abBody[:CB_EXTENDED_GUID]
        cbTotal, ibOffset = struct.unpack(">II", abBody[CB_EXTENDED_GUID:CB_EXTENDED_PREAMBLE])
        mpGuidChunks.setdefault(abGuid, {})[ibOffset] = abBody[CB_EXTENDED_PREAMBLE:]
        mpGuidCbTotal.setdefault(abGuid, cbTotal)

    lTupExtended: list[tuple[str, bytes]] = []
    for abGuid, mpChunk in mpGuidChunks.items():
        abPacket = b"".join(mpChunk[ib] for ib in sorted(mpChunk))
        strGuid = abGuid.decode("ascii", errors="replace")
        if len(abPacket) != mpGuidCbTotal[abGuid]:
            print(
                f"Warning: extended XMP {strGuid} in {strLabel} has "
                f"{len(abPacket)} of {mpGuidCbTotal[abGuid]} bytes.",
                file=sys.stderr,
            )
        lTupExtended.append((f"extended {strGuid}", abPacket))

    return lTupStandard + lTupExtended


def _lTupSourcePacketFromInfo(mpInfo: dict) -> list[tuple[str, bytes]]:
    """Non-JPEG formats expose at most one packet through Image.info."""

    for strKey in g_lStrInfoKeyXmp:
        val = mpInfo.get(strKey)
        if not val:
            continue
        if isinstance(val, str):
            val = val.encode("utf-8")
        return [("info", bytes(val))]
    return []


def _mpStrPropertyFromPacket(
    abPacket: bytes,
    strSource: str,
    strLabel: str,
) -> dict[str, str] | None:
    """Flatten one XMP packet. Returns None if the packet is not well-formed XML."""

    abPacket = abPacket.strip(b"\x00 \t\r\n")

    try:
        # Prefixes as the packet itself declares them.

        mpStrPrefix: dict[str, str] = {}
        for _, (strPrefix, strUri) in ET.iterparse(BytesIO(abPacket), events=("start-ns",)):
            mpStrPrefix.setdefault(strUri, strPrefix)

        root = ET.fromstring(abPacket)
    except ET.ParseError as err:
        print(
            f"Warning: unreadable {strSource} XMP packet in {strLabel} ({err}); ignored.",
            file=sys.stderr,
        )
        return None

    mpStrProperty: dict[str, str] = {}

    for elemDesc in root.iter(f"{{{NS_RDF}}}Description"):
        for strAttr, strValue in elemDesc.attrib.items():
            if strAttr.startswith(f"{{{NS_RDF}}}"):
                continue
            mpStrProperty.setdefault(_strQualifiedName(strAttr, mpStrPrefix), strValue)

        for elemChild in elemDesc:
            strName = _strQualifiedName(elemChild.tag, mpStrPrefix)
            elemContainer = next(
                (e for e in elemChild if e.tag in g_setStrRdfContainer), None
            )

            if elemContainer is not None:
                for i, elemItem in enumerate(elemContainer.findall(f"{{{NS_RDF}}}li"), start=1):
                    mpStrProperty.setdefault(f"{strName}[{i}]", elemItem.text or "")
            elif len(elemChild) == 0:
                mpStrProperty.setdefault(strName, elemChild.text or "")

            # Structured values (nested resources) carry nothing we look up.

    return mpStrProperty


def _strQualifiedName(strTag: str, mpStrPrefix: dict[str, str]) -> str:
    """Turn ElementTree's '{uri}local' into 'prefix:local'."""

    if not strTag.startswith("{"):
        return strTag

    strUri, strLocal = strTag[1:].split("}", 1)
    strPrefix = mpStrPrefix.get(strUri)
    return f"{strPrefix}:{strLocal}" if strPrefix else strLocal
