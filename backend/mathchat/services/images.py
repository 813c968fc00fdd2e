import base64
import mimetypes
import re
from pathlib import Path
from typing import Optional, Tuple, Union

DEFAULT_IMAGE_MIME = "image/jpeg"

_MIME_RE = re.compile(r"^data:([\w.+-]+/[\w.+-]+)[;,]")


def split_data_uri(value: str) -> Tuple[Optional[str], str]:
    """
    Split ``data:<mime>;base64,<data>`` into ``(mime, data)``.

    The payload is whatever follows the first comma; a value without a comma
    is taken to be raw base64 already and comes back unchanged with no mime.
    """
    head, sep, tail = value.partition(",")
    if not sep:
        return None, value

    match = _MIME_RE.match(head + ",")
    mime = match.group(1) if match else None
    return mime, tail or value


def bytes_to_data_uri(data: bytes, mime: str = DEFAULT_IMAGE_MIME) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime};base64,{encoded}"


def file_to_data_uri(path: Union[str, Path]) -> str:
    """Read an image file into a data URI, guessing the mime from its name"""
    path = Path(path)
    mime, _ = mimetypes.guess_type(path.name)
    return bytes_to_data_uri(path.read_bytes(), mime or DEFAULT_IMAGE_MIME)
