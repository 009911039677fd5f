"""Screenshots and icons of imported packages."""

from __future__ import annotations

import logging
import os
import posixpath
import re
from dataclasses import dataclass
from typing import Iterable

from PIL import Image as PILImage

from integdev.importbeats.registry import Image
from integdev.importbeats.svg import SvgError, svg_decode_config

logger = logging.getLogger(__name__)

_IMAGE_RE = re.compile(rb"image::[^\[]+")
_TITLE_TABLE = str.maketrans({"_": " ", "-": " ", "/": None})
_RASTER_FORMATS = {"PNG", "JPEG"}


@dataclass(frozen=True)
class ImageContent:
    """An image file to copy into a package."""

    source: str


def _join(*parts: str) -> str:
    joined = "/".join(part for part in parts if part)
    if not joined:
        return ""
    cleaned = posixpath.normpath(joined)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def _read_optional(path: str) -> bytes | None:
    try:
        with open(path, "rb") as handle:
            return handle.read()
    except FileNotFoundError:
        return None


def extract_images(beat_docs_path: str, docs_file: bytes) -> list[ImageContent]:
    """The images referenced by ``image::`` macros in an AsciiDoc document."""
    return [
        ImageContent(_join(beat_docs_path, match[len(b"image::"):].decode("utf-8")))
        for match in _IMAGE_RE.findall(docs_file)
    ]


def create_images(beat_docs_path: str, module_path: str) -> list[ImageContent]:
    """Images referenced by a module's docs and by its data streams' docs."""
    images: list[ImageContent] = []

    module_docs_path = _join(module_path, "_meta", "docs.asciidoc")
    try:
        module_docs = _read_optional(module_docs_path)
    except OSError as exc:
        raise OSError(f"reading module docs file failed (path: {module_docs_path}): {exc}") from exc
    if module_docs is None:
        logger.info("No docs found (path: %s), skipped", module_docs_path)
    else:
        logger.info("Docs found (path: %s)", module_docs_path)
        images.extend(extract_images(beat_docs_path, module_docs))

    try:
        entries = sorted(os.listdir(module_path))
    except OSError as exc:
        raise OSError(f"cannot read module directory {module_path}: {exc}") from exc

    for name in entries:
        if name == "_meta" or not os.path.isdir(os.path.join(module_path, name)):
            continue
        logger.info("%s: data stream found", name)
        docs_path = _join(module_path, name, "_meta", "docs.asciidoc")
        try:
            docs = _read_optional(docs_path)
        except OSError as exc:
            raise OSError(
                f"reading data stream docs file failed (path: {docs_path}): {exc}"
            ) from exc
        if docs is None:
            logger.info("%s: no docs found (path: %s), skipped", name, docs_path)
            continue
        logger.info("%s: docs found (path: %s)", name, docs_path)
        images.extend(extract_images(beat_docs_path, docs))
    return images


def to_image_title(file_name: str) -> str:
    """A title from a file name without extension, separators turned into spaces."""
    stem = file_name[: file_name.rfind(".")] if "." in file_name else file_name
    return stem.translate(_TITLE_TABLE)


def read_image_size(image_path: str) -> str:
    """The size of a PNG, JPEG or SVG image as ``WIDTHxHEIGHT``."""
    try:
        handle = open(image_path, "rb")
    except OSError as exc:
        raise OSError(f"opening image failed (path: {image_path}): {exc}") from exc
    with handle:
        if image_path.endswith(".svg"):
            try:
                width, height = svg_decode_config(handle)
            except SvgError as exc:
                raise ValueError(f"opening image failed (path: {image_path}): {exc}") from exc
        else:
            try:
                with PILImage.open(handle) as img:
                    image_format = img.format
                    width, height = img.size
            except OSError as exc:
                raise ValueError(f"opening image failed (path: {image_path}): {exc}") from exc
            if image_format not in _RASTER_FORMATS:
                raise ValueError(
                    f"opening image failed (path: {image_path}): unknown format {image_format}"
                )
    return f"{width}x{height}"


def extract_image_type(image_path: str) -> str:
    """The media type of an image, from its extension."""
    if image_path.endswith(".png"):
        return "image/png"
    if image_path.endswith(".jpg"):
        return "image/jpg"
    if image_path.endswith(".svg"):
        return "image/svg+xml"
    raise ValueError(f"unknown image type (path: {image_path})")


def to_manifest_images(images: Iterable[ImageContent]) -> list[Image]:
    """Manifest entries for the images, placed under ``/img``."""
    result = []
    for image in images:
        index = image.source.rfind("/")
        file_name = image.source[index:] if index >= 0 else image.source
        result.append(
            Image(
                src=_join("/img", file_name),
                title=to_image_title(file_name),
                size=read_image_size(image.source),
                type=extract_image_type(image.source),
            )
        )
    return result