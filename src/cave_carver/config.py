"""Runtime configuration for the cave carver."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="CAVE_CARVER_", env_file=".env", extra="ignore")

    app_name: str = "cave-carver"
    log_level: str = "INFO"
    library_dir: str = Field(default="plugins/CaveGen", description="Folder holding pregenerated *.json cave samples.")
    generator_root: str = Field(default=".", description="Server root the generator paths are relative to.")
    generator_executable: str = "AI/cavegen.exe"
    generator_weights: str = "AI/model_1.0.pt"
    generator_z_dim: int = 64
    generator_timeout_seconds: float = 600.0
    realtime_output_prefix: str = Field(
        default="realtime_cave",
        description="File name prefix of generator outputs; such files are never loaded as library samples.",
    )
    centering_offset: tuple[int, int, int] = (-16, -8, -16)
    world_min_height: int = -64
    world_max_height: int = 320
    reload_permission: str = "caves.reload"
    minecraft_adapter: str = Field(default="echo", description="Game command backend: echo or minescript.")
    minescript_command_prefix: str = "/"


settings = Settings()
