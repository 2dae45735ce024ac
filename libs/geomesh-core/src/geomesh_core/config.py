"""Runtime settings for the GeoMesh core services, loaded from GEOMESH_* env vars."""

from pydantic import Field
from pydantic_settings import BaseSettings


class GeoMeshSettings(BaseSettings):
    """Tunables for selection, registration and health reconciliation."""

    model_config = {"env_prefix": "GEOMESH_"}

    anycast_ttl_seconds: int = Field(default=60, gt=0)
    max_conflict_retries: int = Field(default=3, ge=1)
    store_timeout_seconds: float = Field(default=5.0, gt=0)
    default_location_code: str = "europe"
    geoip_database_path: str = "data/GeoLite2-City.mmdb"
