# /camview/exceptions.py


class CamviewError(Exception):
    """Base class for errors raised by camview."""


class NotFoundError(CamviewError):
    """A camera, date or video does not exist under the video root."""


class ThumbnailError(CamviewError):
    """A thumbnail could not be prepared (e.g. its directory cannot be created)."""
