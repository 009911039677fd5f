import pytest
from PIL import Image as PILImage

from integdev.importbeats.images import (
    ImageContent,
    create_images,
    extract_image_type,
    extract_images,
    read_image_size,
    to_image_title,
    to_manifest_images,
)


def _png(path, width, height):
    PILImage.new("RGB", (width, height)).save(path, format="PNG")
    return str(path)


def test_extract_images():
    docs = b"Intro\nimage::./images/a.png[Dash]\nmore image::b/c.jpg[x]\n"
    images = extract_images("/docs", docs)
    assert images == [ImageContent("/docs/images/a.png"), ImageContent("/docs/b/c.jpg")]


def test_extract_images_none():
    assert extract_images("/docs", b"no pictures here") == []


@pytest.mark.parametrize(
    "path,expected",
    [("a.png", "image/png"), ("a.jpg", "image/jpg"), ("a.svg", "image/svg+xml")],
)
def test_extract_image_type(path, expected):
    assert extract_image_type(path) == expected


def test_extract_image_type_unknown():
    with pytest.raises(ValueError):
        extract_image_type("a.gif")


def test_to_image_title():
    assert to_image_title("/my_image-file.png") == "my image file"


def test_read_image_size_png(tmp_path):
    path = _png(tmp_path / "shot.png", 7, 3)
    assert read_image_size(path) == "7x3"


def test_read_image_size_svg(tmp_path):
    path = tmp_path / "logo.svg"
    path.write_text('<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 32 16"></svg>')
    assert read_image_size(str(path)) == "32x16"


def test_read_image_size_missing(tmp_path):
    with pytest.raises(OSError):
        read_image_size(str(tmp_path / "missing.png"))


def test_read_image_size_not_an_image(tmp_path):
    path = tmp_path / "bad.png"
    path.write_bytes(b"not an image")
    with pytest.raises(ValueError):
        read_image_size(str(path))


def test_to_manifest_images(tmp_path):
    path = _png(tmp_path / "kibana_overview.png", 5, 4)
    [image] = to_manifest_images([ImageContent(path)])
    assert image.src == "/img/kibana_overview.png"
    assert image.title == to_image_title("/kibana_overview.png")
    assert image.size == "5x4"
    assert image.type == "image/png"


def test_create_images(tmp_path):
    module = tmp_path / "nginx"
    (module / "_meta").mkdir(parents=True)
    (module / "_meta" / "docs.asciidoc").write_bytes(b"image::./images/module.png[]")
    (module / "stubstatus" / "_meta").mkdir(parents=True)
    (module / "stubstatus" / "_meta" / "docs.asciidoc").write_bytes(b"image::images/ds.png[]")
    (module / "nodocs").mkdir()
    (module / "file.txt").write_text("x")

    images = create_images("/beat/docs", str(module))
    assert [i.source for i in images] == ["/beat/docs/images/module.png", "/beat/docs/images/ds.png"]


def test_create_images_missing_module(tmp_path):
    with pytest.raises(OSError):
        create_images("/beat/docs", str(tmp_path / "missing"))