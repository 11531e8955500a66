"""Resolution of video media locations to local files."""

from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse


class MediaNotFoundError(Exception):
    """Raised when a media location does not map to an existing local file."""

    pass


class MediaResolver:
    """Maps media URLs such as ``/generated/video_1.mp4`` onto ``media_root``.

    Only the file name of the URL path is used, so a location can never
    escape the media directory.
    """

    def __init__(self, media_root: Path) -> None:
        self.media_root = media_root

    def resolve(self, location: str) -> Path:
        path = unquote(urlparse(location).path)
        file_name = PurePosixPath(path).name
        if not file_name or file_name in (".", ".."):
            raise MediaNotFoundError(f"Media location has no file name: {location}")

        media_path = self.media_root / file_name
        if not media_path.is_file():
            raise MediaNotFoundError(f"Video file not found: {media_path}")

        return media_path
