"""YouTube video references: URL parsing and audio download."""

import logging
import re
import subprocess
import tempfile
from pathlib import Path

from scriptmill.models import VideoReference

logger = logging.getLogger(__name__)

_VIDEO_ID_PATTERN = re.compile(
    r"(?:[?&]v=|youtu\.be/|/shorts/|/embed/)([a-zA-Z0-9_-]{11})"
)
_BARE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{11}$")


def extract_video_id(raw: str) -> str | None:
    """Extract the video ID from a YouTube URL or bare ID.

    Supports watch, youtu.be, shorts and embed URLs. The ID is not checked
    against YouTube; a missing video is only discovered by the providers.
    """
    raw = raw.strip()
    match = _VIDEO_ID_PATTERN.search(raw)
    if match:
        return match.group(1)
    if _BARE_ID_PATTERN.match(raw):
        return raw
    return None


def resolve_reference(raw: str) -> VideoReference:
    """Build an immutable reference for one raw input string."""
    return VideoReference(raw=raw, video_id=extract_video_id(raw))


def canonical_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def download_audio(video_id: str, output_dir: Path | None = None) -> Path:
    """Download the best available audio stream using yt-dlp.

    Only audio is fetched and playlists are never expanded. Returns the
    path to the downloaded file.
    """
    if output_dir is None:
        output_dir = Path(tempfile.mkdtemp(prefix="scriptmill_"))

    template = output_dir / f"{video_id}.%(ext)s"
    subprocess.run(  # noqa: S603
        [
            "yt-dlp",
            "-f",
            "bestaudio",
            "--no-playlist",
            "-o",
            str(template),
            canonical_url(video_id),
        ],
        check=True,
        capture_output=True,
    )

    downloaded = sorted(output_dir.glob(f"{video_id}.*"))
    if not downloaded:
        msg = f"yt-dlp produced no audio file for {video_id}"
        raise FileNotFoundError(msg)
    logger.info("Downloaded audio for %s to %s", video_id, downloaded[0])
    return downloaded[0]
