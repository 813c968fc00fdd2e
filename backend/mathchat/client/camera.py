import logging
from typing import Callable, List, Optional

import cv2

from mathchat.core.exceptions import CameraError
from mathchat.services.images import bytes_to_data_uri

logger = logging.getLogger(__name__)


class VideoTrack:
    """One acquired video device; must be stopped to free the hardware"""

    def __init__(self, capture: "cv2.VideoCapture", label: str = "camera"):
        self.capture = capture
        self.label = label
        self.ready_state = "live"

    def read_frame(self):
        if self.ready_state != "live":
            raise CameraError(f"Track {self.label} is already stopped")
        ok, frame = self.capture.read()
        if not ok or frame is None:
            raise CameraError(f"No frame from {self.label}")
        return frame

    def stop(self) -> None:
        if self.ready_state == "ended":
            return
        self.capture.release()
        self.ready_state = "ended"


class MediaStream:
    def __init__(self, tracks: List[VideoTrack]):
        self._tracks = list(tracks)

    def get_tracks(self) -> List[VideoTrack]:
        return list(self._tracks)


def open_camera_stream(device: int = 0) -> MediaStream:
    """Open a video device as a single-track stream"""
    capture = cv2.VideoCapture(device)
    if not capture.isOpened():
        capture.release()
        raise CameraError(f"Could not open camera device {device}")
    return MediaStream([VideoTrack(capture, label=f"camera:{device}")])


class CameraCapture:
    """
    Take a photo of a problem and hand it back as a JPEG data URI.

    ``stop()`` releases every acquired track and can be called any number
    of times. Usable as a context manager so the device is freed on
    cancellation too.
    """

    def __init__(
        self,
        device: int = 0,
        stream_factory: Callable[[int], MediaStream] = open_camera_stream,
        jpeg_quality: int = 92,
    ):
        self.device = device
        self.stream_factory = stream_factory
        self.jpeg_quality = jpeg_quality
        self.stream: Optional[MediaStream] = None

    @property
    def is_active(self) -> bool:
        return self.stream is not None

    def start(self) -> MediaStream:
        if self.stream is None:
            self.stream = self.stream_factory(self.device)
            logger.info(f"Camera {self.device} started")
        return self.stream

    def capture_photo(self) -> str:
        if self.stream is None:
            raise CameraError("Camera is not started")

        try:
            tracks = self.stream.get_tracks()
            if not tracks:
                raise CameraError("Camera stream has no video track")
            frame = tracks[0].read_frame()
            ok, buffer = cv2.imencode(".jpg", frame, [cv2.IMWRITE_JPEG_QUALITY, self.jpeg_quality])
            if not ok:
                raise CameraError("Could not encode camera frame as JPEG")
            return bytes_to_data_uri(buffer.tobytes(), "image/jpeg")
        finally:
            self.stop()

    def stop(self) -> None:
        if self.stream is None:
            return

        failures = []
        try:
            for track in self.stream.get_tracks():
                try:
                    track.stop()
                except Exception as e:
                    logger.error(f"Could not stop track {getattr(track, 'label', track)}: {str(e)}")
                    failures.append(e)
        finally:
            self.stream = None

        if failures:
            raise CameraError(f"{len(failures)} camera track(s) failed to stop") from failures[0]
        logger.info(f"Camera {self.device} stopped")

    def __enter__(self) -> "CameraCapture":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
