# services/display_surrogate_service.py
# Version 01.00.00.00 dated 20261019
# Lazily created, explicitly revoked preview files for displayed photos

import io
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Optional

from PIL import Image

from core.models import Photo
from logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_DIM = 512


class DisplaySurrogate:
    """
    Presentation handle for one photo's content.

    Owns a preview file on disk until revoke() is called.
    """

    def __init__(self, path: str, content):
        self.path = path
        self.content = content
        self.revoked = False

    @property
    def url(self) -> str:
        return Path(self.path).as_uri()

    def revoke(self):
        if self.revoked:
            return
        self.revoked = True
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not remove preview {self.path}: {e}")

    def __repr__(self):
        state = "revoked" if self.revoked else "live"
        return f"DisplaySurrogate({self.path!r}, {state})"


class DisplaySurrogateService:
    """
    Creates display surrogates on first display need.

    A surrogate is cached on its Photo and reused until the photo's content
    object changes. Decodable images become a PNG thumbnail no larger than
    `max_dim`; anything Pillow cannot decode (SVG, most RAW files) is copied
    verbatim.
    """

    def __init__(self, cache_dir: Optional[str] = None, max_dim: int = DEFAULT_MAX_DIM):
        self._owns_cache_dir = cache_dir is None
        if cache_dir is None:
            cache_dir = tempfile.mkdtemp(prefix="photo_picker_previews_")
        os.makedirs(cache_dir, exist_ok=True)
        self.cache_dir = cache_dir
        self.max_dim = max_dim

    def close(self):
        """
        Remove the preview directory if this service created it.

        A caller-supplied cache_dir is left in place. Surrogates still held
        by photos point at deleted files afterwards; release them first.
        """
        if not self._owns_cache_dir:
            return
        shutil.rmtree(self.cache_dir, ignore_errors=True)
        self._owns_cache_dir = False
        logger.debug(f"Removed preview directory {self.cache_dir}")

    def surrogate_for(self, photo: Photo) -> Optional[DisplaySurrogate]:
        """
        Cached surrogate for `photo`, created on first call.

        Returns:
            DisplaySurrogate, or None when the photo has no readable content
        """
        current = photo.display_surrogate
        if current is not None and not current.revoked and current.content is photo.content:
            return current
        if current is not None:
            photo.release()

        if photo.content is None:
            return None

        try:
            data = photo.content.read()
        except OSError as e:
            logger.warning(f"Cannot read {photo.path} for display: {e}")
            return None

        surrogate = DisplaySurrogate(self._render(photo, data), photo.content)
        photo.display_surrogate = surrogate
        return surrogate

    def release(self, photo: Photo):
        photo.release()

    def _render(self, photo: Photo, data: bytes) -> str:
        token = uuid.uuid4().hex
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                img.thumbnail((self.max_dim, self.max_dim), Image.Resampling.LANCZOS)
                if img.mode not in ("RGB", "RGBA"):
                    img = img.convert("RGBA" if "transparency" in img.info else "RGB")
                target = os.path.join(self.cache_dir, f"{token}.png")
                img.save(target, format="PNG")
                return target
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            logger.debug(f"Pillow cannot decode {photo.name}, copying verbatim: {e}")

        suffix = os.path.splitext(photo.name)[1].lower()
        target = os.path.join(self.cache_dir, f"{token}{suffix}")
        with open(target, "wb") as f:
            f.write(data)
        return target
