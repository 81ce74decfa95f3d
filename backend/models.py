#file: backend/models.py

from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_REGION = "Unknown"


class Pollutant(str, Enum):
    PM25 = "pm25"
    PM10 = "pm10"
    CO2 = "co2"
    CO = "co"
    HCHO = "hcho"
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    WATER_VAPOUR = "waterVapour"


class PollutantInfo(NamedTuple):
    label: str
    unit: str
    column: str


POLLUTANTS: Dict[Pollutant, PollutantInfo] = {
    Pollutant.PM25: PollutantInfo("PM2.5", "µg/m³", "pm25_ugm3"),
    Pollutant.PM10: PollutantInfo("PM10", "µg/m³", "pm10_ugm3"),
    Pollutant.CO2: PollutantInfo("CO₂", "ppm", "co2_ppm"),
    Pollutant.CO: PollutantInfo("CO", "ppm", "co_ppm"),
    Pollutant.HCHO: PollutantInfo("HCHO", "mg/m³", "hcho_mgm3"),
    Pollutant.TEMPERATURE: PollutantInfo("Temperature", "°C", "temperature_c"),
    Pollutant.HUMIDITY: PollutantInfo("Humidity", "%", "humidity_percent"),
    Pollutant.WATER_VAPOUR: PollutantInfo("Water vapour", "", "water_vapour"),
}

# Pollutants offered in the map filters; temperature and humidity are always shown
GAS_POLLUTANTS = [Pollutant.PM25, Pollutant.PM10, Pollutant.CO2, Pollutant.CO, Pollutant.HCHO]


class ViewMode(str, Enum):
    POINTS = "points"
    HEATMAP = "heatmap"


class Reading(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Union[int, str] = Field(..., description="Stable identifier of the reading")
    location: str = Field(..., min_length=1, description="Human-readable station name")
    region: str = Field(UNKNOWN_REGION, description="Administrative grouping key, e.g. state name")
    coordinates: Optional[Tuple[float, float]] = Field(None, description="(longitude, latitude) in WGS84 degrees")
    pollutants: Dict[str, float] = Field(default_factory=dict, description="Concentration per pollutant key")
    uploader_name: Optional[str] = Field(None, description="Name given by the uploader")
    source_file: Optional[str] = Field(None, description="File or sensor the reading came from")
    upload_time: Optional[str] = Field(None, description="Upload timestamp in ISO format")

    @field_validator("region", mode="before")
    @classmethod
    def normalize_region(cls, value) :
        if value is None :
            return UNKNOWN_REGION
        value = str(value).strip()
        return value or UNKNOWN_REGION

    @field_validator("pollutants", mode="before")
    @classmethod
    def fill_pollutants(cls, value) :
        """Key by pollutant name and default every missing pollutant to 0."""
        given = {Pollutant(key).value : amount for key, amount in (value or {}).items()}
        return {
            pollutant.value : 0.0 if given.get(pollutant.value) is None else given[pollutant.value]
            for pollutant in Pollutant
        }

    @property
    def longitude(self) -> Optional[float] :
        return self.coordinates[0] if self.coordinates else None

    @property
    def latitude(self) -> Optional[float] :
        return self.coordinates[1] if self.coordinates else None

    def value(self, pollutant: Union[Pollutant, str]) -> float :
        return self.pollutants.get(Pollutant(pollutant).value, 0.0)


class FilterState(BaseModel):
    selected_regions: List[str] = Field(default_factory=list)
    all_regions: bool = True
    selected_pollutants: List[Pollutant] = Field(
        default_factory=lambda: [Pollutant.PM25, Pollutant.PM10, Pollutant.CO2])
    view_mode: ViewMode = ViewMode.POINTS
    heat_pollutant: Pollutant = Pollutant.PM25

    @classmethod
    def for_regions(cls, regions: Optional[List[str]] = None, **kwargs) -> "FilterState" :
        """An empty region selection means every region is shown."""
        regions = [region for region in regions or [] if region]
        return cls(selected_regions=regions, all_regions=not regions, **kwargs)


class Classification(BaseModel):
    band: int = Field(..., ge=1, le=5)
    label: str
    color_token: str
    color_hex: str


class HeatPoint(BaseModel):
    lat: float
    lon: float
    intensity: float = Field(..., ge=0.1, le=1.0)


class LoadResult(BaseModel):
    loaded: int
    dropped: int


class UploadResult(BaseModel):
    success: bool = True
    count: int
    dropped: int
    message: str


class Insight(BaseModel):
    title: str
    description: str
    severity: str = Field("low", pattern="^(low|medium|high)$")
    timestamp: Optional[str] = None
    recommendations: List[str] = Field(default_factory=list)

    @field_validator("severity", mode="before")
    @classmethod
    def lower_severity(cls, value) :
        return "low" if value is None else str(value).strip().lower()


class ChatMessage(BaseModel):
    role: str = Field(..., description="'user' or 'assistant'")
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatMessage]


class InsightsResponse(BaseModel):
    snapshot: Dict[str, Any]
    insights: List[Insight]
