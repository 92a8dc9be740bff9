"""
Video Ingestion
Resolves a job's source reference to a local video file, either from the
object store or from an external URL via yt-dlp
"""

import asyncio
import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yt_dlp

from ..utils.exceptions import IngestionError
from ..utils.logger import get_logger
from .object_store import ObjectStore, get_object_store

logger = get_logger()


@dataclass
class IngestedVideo:
    """Local copy of a job's source video"""
    path: str
    mime_type: str
    title: str
    size_bytes: int

    def cleanup(self):
        try:
            if os.path.exists(self.path):
                os.remove(self.path)
        except OSError as exc:
            logger.warning(f"Failed to remove file {self.path}: {exc}")


def is_external_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class VideoIngestor:
    """Fetches source videos into the temp directory"""

    def __init__(self, object_store: Optional[ObjectStore] = None, temp_dir: str = "temp"):
        self.object_store = object_store or get_object_store()
        self.temp_dir = Path(temp_dir)
        self.temp_dir.mkdir(parents=True, exist_ok=True)

    async def fetch(self, job_id: str, owner: str, source: str) -> IngestedVideo:
        """
        Download the job's source video

        Args:
            job_id: Job identifier, used to name the local copy
            owner: Owner the object store path is scoped to
            source: Object store path or http(s) URL

        Returns:
            IngestedVideo pointing at a local file
        """
        if is_external_url(source):
            video = await self._download_url(job_id, source)
        else:
            video = await self._download_object(job_id, owner, source)

        size_mb = video.size_bytes / (1024 * 1024)
        logger.info(f"Video downloaded: {video.title} ({size_mb:.2f} MB, {video.mime_type})")
        return video

    def _discard_partial(self, job_id: str):
        """Remove whatever a failed download left behind for this job, including .part files"""
        for leftover in self.temp_dir.glob(f"{job_id}_*"):
            try:
                leftover.unlink()
            except OSError as exc:
                logger.warning(f"Failed to remove partial download {leftover}: {exc}")

    async def _download_object(self, job_id: str, owner: str, source: str) -> IngestedVideo:
        logger.info(f"Downloading video from storage: {source}")
        destination = self.temp_dir / f"{job_id}_{Path(source).name}"

        try:
            await self.object_store.download(owner, source, str(destination))
        except Exception as e:
            self._discard_partial(job_id)
            raise IngestionError(f"Failed to download video: {e}", source=source) from e

        mime_type = mimetypes.guess_type(str(destination))[0] or "video/mp4"
        return IngestedVideo(
            path=str(destination),
            mime_type=mime_type,
            title=Path(source).stem,
            size_bytes=destination.stat().st_size,
        )

    async def _download_url(self, job_id: str, url: str) -> IngestedVideo:
        logger.info(f"Starting download: {url}")
        output_path: Optional[str] = None
        video_info: dict = {}

        def progress_hook(d):
            nonlocal output_path
            if d['status'] == 'finished':
                output_path = d['filename']
                logger.info(f"Download finished: {output_path}")

        ydl_opts = {
            'format': 'best[height<=1080][ext=mp4]/best[height<=1080]/best',
            'outtmpl': str(self.temp_dir / f'{job_id}_%(id)s.%(ext)s'),
            'progress_hooks': [progress_hook],
            'quiet': True,
            'no_warnings': True,
            'noplaylist': True,
        }

        def do_download():
            nonlocal output_path, video_info
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = ydl.extract_info(url, download=True)
                video_info = {
                    'id': info.get('id'),
                    'title': info.get('title'),
                    'ext': info.get('ext', 'mp4'),
                }
                if not output_path:
                    output_path = ydl.prepare_filename(info)

        try:
            await asyncio.get_running_loop().run_in_executor(None, do_download)
        except yt_dlp.utils.DownloadError as e:
            self._discard_partial(job_id)
            raise IngestionError(f"Failed to download video: {e}", source=url) from e

        if not output_path or not os.path.exists(output_path):
            self._discard_partial(job_id)
            raise IngestionError("Failed to download video", source=url)

        mime_type = mimetypes.guess_type(output_path)[0] or "video/mp4"
        return IngestedVideo(
            path=output_path,
            mime_type=mime_type,
            title=video_info.get('title') or "Untitled",
            size_bytes=os.path.getsize(output_path),
        )
