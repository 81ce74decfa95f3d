#file: backend/errors.py


class AirQualityError(Exception):
    """Base class for recoverable errors raised by the reading pipeline."""


class ValidationError(AirQualityError):
    """A reading lacks the spatial data needed for map and heatmap views."""

    def __init__(self, reading_id, message: str = "reading has no coordinates") :
        super().__init__(f"Reading {reading_id}: {message}")
        self.reading_id = reading_id


class InvalidMeasurement(AirQualityError):
    """A concentration is missing or not a number."""


class EmptyDataset(AirQualityError):
    """An export was requested on zero readings."""


class CaptureFailure(AirQualityError):
    """Rasterizing the map surface failed. Safe to retry."""


class IngestError(AirQualityError):
    """An uploaded file could not be turned into readings."""


class InsightError(AirQualityError):
    """The language model call failed or returned nothing usable."""
