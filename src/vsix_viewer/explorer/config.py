"""Configuration schema for the archive explorer."""

from pydantic import BaseModel, Field, ConfigDict, field_validator

from vsix_viewer.common import LoggingConfig


class IconGroup(BaseModel):
    """One icon group: a canonical icon name and the extensions that use it."""

    model_config = ConfigDict(extra='forbid')

    icon: str = Field(description="Canonical icon group name")
    extensions: list[str] = Field(
        default_factory=list,
        description="File extensions (without the leading dot) shown with this icon"
    )

    @field_validator('extensions', mode='before')
    @classmethod
    def normalize_extensions(cls, v):
        """Lowercase extensions and strip leading dots."""
        if isinstance(v, str):
            v = [v]
        if isinstance(v, list):
            return [ext.lower().lstrip('.') if isinstance(ext, str) else ext for ext in v]
        return v


class ViewerSettings(BaseModel):
    """Presentation settings."""

    model_config = ConfigDict(extra='forbid')

    show_count_badge: bool = Field(
        default=False,
        description="Show the number of children next to each directory"
    )
    images_dir: str | None = Field(
        default=None,
        description="Directory holding light/ and dark/ SVG icon assets"
    )


class ServerSettings(BaseModel):
    """HTTP API settings."""

    model_config = ConfigDict(extra='forbid')

    host: str = Field(default="127.0.0.1", description="Bind address")
    port: int = Field(default=8321, ge=1, le=65535, description="Bind port")


class ViewerConfig(BaseModel):
    """Root configuration for the VSIX viewer."""

    model_config = ConfigDict(extra='forbid')

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    viewer: ViewerSettings = Field(default_factory=ViewerSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    icons: dict[str, IconGroup] = Field(
        default_factory=dict,
        description="Extension to icon group table, keyed by group name"
    )
