import json
import os
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Mapping, Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from .errors import InputDecodingError
from .utils.logger import get_logger

logger = get_logger(__name__)

@dataclass(frozen=True)
class UploadedImage:
    """An uploaded image saved to a temporary file for the duration of one request."""
    path: str
    mime_type: str
    filename: str = ""

@dataclass(frozen=True)
class ComparisonRequest:
    product_name: str = ""
    image: Optional[UploadedImage] = None
    vendors: Any = field(default_factory=list)

def parse_platforms(platforms: Any) -> Any:
    """
    Decode the `platforms` field into the vendor list.

    Form uploads send every field as a string, so the list arrives JSON-encoded.
    A value that is already decoded (JSON request bodies) is passed through.
    """
    if platforms is None or platforms == "":
        return []
    if not isinstance(platforms, str):
        return platforms
    try:
        return json.loads(platforms)
    except ValueError as e:
        raise InputDecodingError(
            f"Could not decode platforms: {e}",
            details={"platforms": platforms[:200]},
        ) from e

@contextmanager
def saved_upload(file: Optional[FileStorage], upload_dir: str) -> Iterator[Optional[UploadedImage]]:
    """Save an uploaded file under upload_dir and delete it when the block exits."""
    if file is None or not file.filename:
        yield None
        return

    Path(upload_dir).mkdir(parents=True, exist_ok=True)
    original_name = secure_filename(file.filename)
    path = os.path.join(upload_dir, f"{uuid.uuid4().hex}_{original_name}" if original_name else uuid.uuid4().hex)
    file.save(path)
    try:
        yield UploadedImage(path=path, mime_type=file.mimetype or "application/octet-stream", filename=file.filename)
    finally:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        else:
            logger.info(f"Removed uploaded file {path}")

def _request_fields(req) -> Mapping[str, Any]:
    if req.is_json:
        payload = req.get_json(silent=True)
        if not isinstance(payload, dict):
            raise InputDecodingError("Request body must be a JSON object")
        return payload
    return req.form

@contextmanager
def comparison_request(req, upload_dir: str) -> Iterator[ComparisonRequest]:
    """
    Build the ComparisonRequest for an incoming Flask request.

    The uploaded image, if any, only exists on disk inside the `with` block.
    """
    fields = _request_fields(req)
    search_text = fields.get("searchText") or ""
    vendors = parse_platforms(fields.get("platforms"))

    with saved_upload(req.files.get("image"), upload_dir) as image:
        yield ComparisonRequest(product_name=search_text, image=image, vendors=vendors)
