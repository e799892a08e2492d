"""Tests for cardboard photo extraction, captions and manifest entries."""

import base64
from io import BytesIO
from pathlib import Path

import pytest
from PIL import Image

from cardboard2webvr.errors import CorruptPayloadError, DecodeError, NotStereoPhotoError
from cardboard2webvr.photo import (
    CardboardPhoto,
    abDecodeRightEye,
    extractPhoto,
    photoStart,
    strCaptionFromFilename,
    strRepairBase64Padding,
)
from cardboard2webvr.xmp import AB_XMP_STANDARD_HEADER
from conftest import abJpegWithApp1, strXmpPacket


@pytest.mark.parametrize("str64", ["", "Q", "QU", "QUJ", "QUJD", "QUJDR", "QUJDRA"])
def test_strRepairBase64Padding_multiple_of_four(str64):
    strRepaired = strRepairBase64Padding(str64)
    assert len(strRepaired) % 4 == 0
    assert strRepaired.startswith(str64)
    assert set(strRepaired[len(str64):]) <= {"="}


def test_strRepairBase64Padding_leaves_padded_alone():
    assert strRepairBase64Padding("aGk=") == "aGk="


@pytest.mark.parametrize("ab", [b"h", b"hi", b"hi!", b"hello world", bytes(range(256))])
def test_abDecodeRightEye_without_padding(ab):
    strUnpadded = base64.b64encode(ab).decode("ascii").rstrip("=")
    assert abDecodeRightEye(strUnpadded) == ab


def test_abDecodeRightEye_line_wrapped():
    str64 = base64.b64encode(b"line wrapped payload").decode("ascii")
    strWrapped = "\n".join(str64[i:i + 8] for i in range(0, len(str64), 8))
    assert abDecodeRightEye(strWrapped) == b"line wrapped payload"


@pytest.mark.parametrize("strPayload", ["not*base64!", "QUJDR", "QU=JD"])
def test_abDecodeRightEye_corrupt(strPayload):
    with pytest.raises(CorruptPayloadError) as excinfo:
        abDecodeRightEye(strPayload, Path("bad.vr.jpg"))
    assert excinfo.value.pathSource == Path("bad.vr.jpg")


@pytest.mark.parametrize(
    "strName, strCaption",
    [
        ("IMG_0001.vr.jpg", "IMG_0001"),
        ("beach.jpg", "beach"),
        ("beach.VR.jpg", "beach.VR"),
        ("trip.vr.backup.jpg", "trip.vr.backup"),
        ("noext", "noext"),
        (".vr.jpg", ".vr.jpg"),
    ],
)
def test_strCaptionFromFilename(strName, strCaption):
    assert strCaptionFromFilename(Path(strName)) == strCaption


def test_extractPhoto_extended_payload(tmp_path, makeCardboardJpeg):
    imgRight = Image.new("RGB", (40, 30), (0, 255, 0))
    path = makeCardboardJpeg(tmp_path / "IMG_1.vr.jpg", imgRight=imgRight)

    photo = extractPhoto(path)

    assert photo.pathSource == path
    assert photo.strRightEyeMime == "image/jpeg"
    with Image.open(BytesIO(photo.abRightEye)) as img:
        assert img.format == "JPEG"
        assert img.size == (40, 30)


def test_extractPhoto_standard_payload(tmp_path, makeCardboardJpeg):
    path = makeCardboardJpeg(tmp_path / "a.vr.jpg", fExtended=False, fStripPadding=False)
    photo = extractPhoto(path)
    assert photo.abRightEye[:2] == b"\xff\xd8"


def test_extractPhoto_caption_title_first(tmp_path, makeCardboardJpeg):
    path = makeCardboardJpeg(tmp_path / "a.vr.jpg", strTitle="Title", strDescription="Description")
    photo = extractPhoto(path)
    assert photo.strCaption == "Title"
    assert photo.strCaptionSource == "dc:title[1]"


def test_extractPhoto_caption_description_trimmed(tmp_path, makeCardboardJpeg):
    path = makeCardboardJpeg(tmp_path / "a.vr.jpg", strTitle="  ", strDescription="  Harbor at dusk ")
    photo = extractPhoto(path)
    assert photo.strCaption == "Harbor at dusk"
    assert photo.strCaptionSource == "dc:description[1]"


def test_extractPhoto_caption_from_filename(tmp_path, makeCardboardJpeg):
    path = makeCardboardJpeg(tmp_path / "PANO_20170101.vr.jpg")
    photo = extractPhoto(path)
    assert photo.strCaption == "PANO_20170101"
    assert photo.strCaptionSource == "filename"


def test_extractPhoto_not_stereo(pathPlainJpeg):
    with pytest.raises(NotStereoPhotoError) as excinfo:
        extractPhoto(pathPlainJpeg)
    assert excinfo.value.pathSource == pathPlainJpeg


def test_extractPhoto_blank_payload_is_not_stereo(tmp_path, makeCardboardJpeg):
    path = makeCardboardJpeg(tmp_path / "blank.vr.jpg", strPayload="   ")
    with pytest.raises(NotStereoPhotoError):
        extractPhoto(path)


def test_extractPhoto_blank_standard_falls_through_to_extended(tmp_path):
    abRight = base64.b64encode(b"right eye bytes").decode("ascii")
    strBlank = strXmpPacket({"GImage:Data": " "})
    strReal = strXmpPacket({"GImage:Data": abRight})
    path = tmp_path / "two.vr.jpg"
    path.write_bytes(
        abJpegWithApp1(
            Image.new("RGB", (8, 8)),
            [AB_XMP_STANDARD_HEADER + strBlank.encode(), AB_XMP_STANDARD_HEADER + strReal.encode()],
        )
    )

    assert extractPhoto(path).abRightEye == b"right eye bytes"


def test_extractPhoto_corrupt_payload(tmp_path, makeCardboardJpeg):
    path = makeCardboardJpeg(tmp_path / "bad.vr.jpg", strPayload="%%%%")
    with pytest.raises(CorruptPayloadError):
        extractPhoto(path)


def test_extractPhoto_not_an_image(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("not an image")
    with pytest.raises(DecodeError) as excinfo:
        extractPhoto(path)
    assert excinfo.value.pathSource == path


def test_save_methods_set_paths(tmp_path, makeCardboardJpeg):
    photo = extractPhoto(makeCardboardJpeg(tmp_path / "a.vr.jpg"))

    pathLeft = photo.saveLeftPhoto(tmp_path / "left.jpg")
    pathRight = photo.saveRightPhoto(tmp_path / "right.jpg")
    pathPreview = photo.savePreview(tmp_path / "preview.jpg", 16)

    assert (photo.pathLeftImage, photo.pathRightImage, photo.pathPreviewImage) == (
        pathLeft,
        pathRight,
        pathPreview,
    )
    with Image.open(pathLeft) as img:
        assert img.size == (64, 32)
    with Image.open(pathRight) as img:
        assert img.size == (64, 32)
    with Image.open(pathPreview) as img:
        assert img.size == (16, 16)


def test_save_flat_writes_payload_verbatim(tmp_path, makeCardboardJpeg):
    pathSource = makeCardboardJpeg(tmp_path / "a.vr.jpg")
    photo = extractPhoto(pathSource)

    photo.saveLeftPhoto(tmp_path / "left.jpg", fEquirectangular=False)
    photo.saveRightPhoto(tmp_path / "right.jpg", fEquirectangular=False)

    assert (tmp_path / "left.jpg").read_bytes() == pathSource.read_bytes()
    assert (tmp_path / "right.jpg").read_bytes() == photo.abRightEye


def test_saveRightPhoto_undecodable_payload(tmp_path):
    photo = CardboardPhoto(strCaption="x", pathSource=tmp_path / "x.jpg", abRightEye=b"garbage")
    with pytest.raises(DecodeError):
        photo.saveRightPhoto(tmp_path / "right.jpg")
    assert photo.pathRightImage is None


def test_assignImageIds_and_manifest_entry():
    photo = CardboardPhoto(strCaption="Dock")
    photo.assignImageIds(3)

    assert photo.mpManifestEntry() == {
        "leftImageId": "#image3-left",
        "rightImageId": "#image3-right",
        "caption": "Dock",
        "previewImageId": "#image3-preview",
    }


def test_photoStart_manifest_entry():
    assert photoStart().mpManifestEntry() == {
        "leftImageId": "#start",
        "rightImageId": "#start",
        "caption": "Welcome",
    }
    assert photoStart("Summer 2017").strCaption == "Summer 2017"
