import os
import re

import config
import uploads


def test_store_attachment_writes_file_and_returns_public_path():
    path = uploads.store_attachment(b"\x89PNG data", "cat.png")

    assert re.fullmatch(r"/uploads/\d+-cat\.png", path)
    stored = os.path.join(config.UPLOAD_DIR, path.rsplit("/", 1)[1])
    with open(stored, "rb") as fh:
        assert fh.read() == b"\x89PNG data"


def test_directory_components_are_stripped():
    path = uploads.store_attachment(b"x", "../../etc/passwd")

    assert re.fullmatch(r"/uploads/\d+-passwd", path)
    assert os.listdir(config.UPLOAD_DIR) == [path.rsplit("/", 1)[1]]


def test_missing_name_gets_a_placeholder():
    path = uploads.store_attachment(b"x", "")

    assert path.endswith("-file")
