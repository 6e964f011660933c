import base64
import os

import pytest

from audio_codec import AudioCodec, AudioDecodeError


@pytest.mark.parametrize(
    "payload",
    [b"\x00", b"ID3\x03\x00\x00\x00", bytes(range(256)), os.urandom(4096)],
)
def test_decoded_handle_holds_original_bytes(payload: bytes) -> None:
    codec = AudioCodec()

    handle = codec.decode(base64.b64encode(payload).decode("ascii"))

    assert handle.data == payload
    assert handle.mime == "audio/mpeg"
    assert handle.url.startswith("blob:")
    assert codec.resolve(handle.url) == payload


def test_each_decode_gets_its_own_url() -> None:
    codec = AudioCodec()
    encoded = base64.b64encode(b"same").decode("ascii")

    first = codec.decode(encoded)
    second = codec.decode(encoded)

    assert first.url != second.url
    assert len(codec) == 2


@pytest.mark.parametrize("payload", ["", "   ", "not base64!!", "QUJD="])
def test_invalid_payload_raises(payload: str) -> None:
    with pytest.raises(AudioDecodeError):
        AudioCodec().decode(payload)


def test_unknown_or_released_urls_do_not_resolve() -> None:
    codec = AudioCodec()
    handle = codec.decode(base64.b64encode(b"clip").decode("ascii"))

    codec.release(handle.url)

    assert codec.resolve(handle.url) is None
    assert codec.resolve("blob:from-another-session") is None
    assert codec.resolve(None) is None


def test_retain_releases_unreferenced_clips() -> None:
    codec = AudioCodec()
    keep = codec.decode(base64.b64encode(b"keep").decode("ascii"))
    drop = codec.decode(base64.b64encode(b"drop").decode("ascii"))

    assert codec.retain({keep.url, "blob:unknown"}) == 1

    assert len(codec) == 1
    assert codec.resolve(keep.url) == b"keep"
    assert codec.resolve(drop.url) is None
