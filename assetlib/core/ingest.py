""" Upload ingestion: turn uploaded files into asset drafts.

Every file in a batch is encoded concurrently and the drafts are only handed back once all of them finished.
A single failure fails the whole batch, so callers never see part of an upload.
"""
from __future__ import annotations

import asyncio
import base64
import inspect
import logging
import mimetypes
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Union

from PIL import Image as PILImage

from .operations import AssetDraft

log = logging.getLogger(__name__)

Encoder = Callable[[str, bytes], Union[str, Awaitable[str]]]


class IngestError(Exception):
    """ One of the files in an upload batch could not be encoded. """

    def __init__(self, name: str, cause: BaseException):
        super().__init__(f"Could not read {name!r}: {cause}")
        self.name = name
        self.cause = cause


@dataclass(frozen=True)
class UploadSource:
    name: str
    raw: bytes

    @classmethod
    def from_path(cls, path: str | Path) -> UploadSource:
        p = Path(path)
        return cls(name=p.name, raw=p.read_bytes())


def image_mime(name: str, raw: bytes) -> str:
    """ MIME type of an image, decided by its content rather than its file name.

    Raises
    ------
    ValueError
        If Pillow cannot identify the bytes as an image.
    """
    try:
        with PILImage.open(BytesIO(raw)) as im:
            fmt = (im.format or "").upper()
            im.verify()
    except (OSError, SyntaxError, ValueError) as e:
        raise ValueError(f"{name} is not a readable image") from e
    return PILImage.MIME.get(fmt) or mimetypes.guess_type(name)[0] or f"image/{fmt.lower()}"


def to_data_uri(name: str, raw: bytes) -> str:
    """ Default encoder: base64 ``data:`` URI the editor can use directly as an image source. """
    mime = image_mime(name, raw)
    return f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"


async def _read_one(source: UploadSource, encoder: Encoder) -> AssetDraft:
    try:
        if inspect.iscoroutinefunction(encoder):
            data = await encoder(source.name, source.raw)
        else:
            data = await asyncio.to_thread(encoder, source.name, source.raw)
            # plain callables may still hand back an awaitable
            if inspect.isawaitable(data):
                data = await data
        if not isinstance(data, str):
            raise TypeError(f"encoder returned {type(data).__name__}, expected str")
    except Exception as e:
        raise IngestError(source.name, e) from e
    return AssetDraft(name=source.name, data=data)


async def ingest(sources: Iterable[UploadSource], encoder: Encoder = to_data_uri) -> list[AssetDraft]:
    """ Encode a batch of uploads concurrently.

    Parameters
    ----------
    sources : iterable of UploadSource
        The uploaded files, in the order they should appear in the folder.
    encoder : callable
        ``(name, raw) -> str``, plain or async. Plain encoders run in a worker thread.

    Returns
    -------
    list of AssetDraft
        One draft per source, in source order.

    Raises
    ------
    IngestError
        If any file fails. The remaining reads are cancelled and nothing is returned.
    """
    items = list(sources)
    if not items:
        return []

    tasks = [asyncio.ensure_future(_read_one(src, encoder)) for src in items]
    try:
        drafts = await asyncio.gather(*tasks)
    except BaseException:
        for t in tasks:
            t.cancel()
        # collect every outcome so no task is left with an unretrieved exception
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    log.debug("Encoded %d uploaded files", len(drafts))
    return list(drafts)
