"""
Data models for GDPS Launcher.

Defines Pydantic models for server metadata, the catalog of registered
servers, the add-server patch session and the published launcher state.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TextAlignment(str, Enum):
    """Text alignment requested by a server for its description."""
    
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class PatchPhase(str, Enum):
    """Phase of the add-server workflow."""
    
    IDLE = "idle"
    VALIDATING = "validating"
    PATCHING = "patching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ServerMetadata(BaseModel):
    """Descriptive metadata for a server, as served by the directory API."""
    
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    
    id: str = Field(alias="srvid", description="Server identifier")
    display_name: str = Field(alias="srvName", description="Server display name")
    description: str = Field(default="", description="Server description")
    icon_url: str = Field(default="", alias="icon", description="Icon URL")
    background_image_url: str = Field(
        default="", alias="backgroundImage", description="Background image URL"
    )
    user_count: int = Field(default=0, ge=0, alias="userCount", description="Registered users")
    level_count: int = Field(default=0, ge=0, alias="levelCount", description="Uploaded levels")
    text_alignment: TextAlignment = Field(
        default=TextAlignment.LEFT, alias="textAlign", description="Description alignment"
    )
    
    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """The directory sometimes returns numeric ids."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v
    
    @field_validator("id", "display_name")
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        """Validate required text fields."""
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()
    
    @field_validator("description", "icon_url", "background_image_url", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        """Missing optional text is an empty string, never None."""
        return "" if v is None else v


class DirectoryResponse(BaseModel):
    """Envelope returned by ``GET /gdps/{id}/fetch``."""
    
    success: bool
    server: Optional[ServerMetadata] = None


class FetchResult(BaseModel):
    """Tagged result of a metadata fetch."""
    
    model_config = ConfigDict(frozen=True)
    
    server_id: str
    metadata: Optional[ServerMetadata] = None
    error: Optional[str] = None
    
    @property
    def success(self) -> bool:
        """Whether metadata was retrieved."""
        return self.metadata is not None
    
    @classmethod
    def ok(cls, server_id: str, metadata: ServerMetadata) -> "FetchResult":
        return cls(server_id=server_id, metadata=metadata)
    
    @classmethod
    def failed(cls, server_id: str, error: str) -> "FetchResult":
        return cls(server_id=server_id, error=error)


class CatalogEntry(BaseModel):
    """A host-registered server paired with its metadata."""
    
    model_config = ConfigDict(frozen=True)
    
    server_id: str = Field(description="Identifier confirmed by the host")
    metadata: ServerMetadata
    
    @property
    def display_name(self) -> str:
        return self.metadata.display_name
    
    def __str__(self) -> str:
        return f"{self.metadata.display_name} ({self.server_id})"


class Catalog(BaseModel):
    """
    Ordered, immutable collection of catalog entries.
    
    Entries keep host enumeration order. ``unresolved`` lists the
    registered ids whose metadata could not be fetched during the refresh
    that produced this catalog; they are never part of ``entries``.
    """
    
    model_config = ConfigDict(frozen=True)
    
    entries: Tuple[CatalogEntry, ...] = ()
    unresolved: Tuple[str, ...] = ()
    
    def get(self, server_id: str) -> Optional[CatalogEntry]:
        """Get entry by server id."""
        for entry in self.entries:
            if entry.server_id == server_id:
                return entry
        return None
    
    def ids(self) -> Tuple[str, ...]:
        """Server ids in catalog order."""
        return tuple(entry.server_id for entry in self.entries)
    
    def __contains__(self, server_id: object) -> bool:
        return any(entry.server_id == server_id for entry in self.entries)
    
    def __len__(self) -> int:
        return len(self.entries)


class PatchSession(BaseModel):
    """Transient state of the add-server workflow."""
    
    model_config = ConfigDict(frozen=True)
    
    input_id: str = ""
    phase: PatchPhase = PatchPhase.IDLE
    status_message: str = ""
    dialog_open: bool = False
    error_code: Optional[str] = None
    
    @property
    def is_patching(self) -> bool:
        return self.phase == PatchPhase.PATCHING
    
    @property
    def is_finished(self) -> bool:
        return self.phase in (PatchPhase.SUCCEEDED, PatchPhase.FAILED)


class ServerView(BaseModel):
    """Presentation data derived from the selected catalog entry."""
    
    model_config = ConfigDict(frozen=True)
    
    server_id: str
    display_name: str
    description: str
    icon_url: str
    background_image_url: str
    text_alignment: TextAlignment
    user_count: int
    level_count: int
    
    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "ServerView":
        meta = entry.metadata
        return cls(
            server_id=entry.server_id,
            display_name=meta.display_name,
            description=meta.description,
            icon_url=meta.icon_url,
            background_image_url=meta.background_image_url,
            text_alignment=meta.text_alignment,
            user_count=meta.user_count,
            level_count=meta.level_count,
        )


class LauncherState(BaseModel):
    """Snapshot of everything the presentation layer renders."""
    
    model_config = ConfigDict(frozen=True)
    
    catalog: Catalog = Field(default_factory=Catalog)
    selected: Optional[CatalogEntry] = None
    patch_session: PatchSession = Field(default_factory=PatchSession)
    refreshing: bool = False
    last_error: Optional[str] = None
    
    @property
    def view(self) -> Optional[ServerView]:
        """View data for the current selection."""
        if self.selected is None:
            return None
        return ServerView.from_entry(self.selected)
    
    def to_dict(self) -> Dict[str, Any]:
        """Serializable form for JSON output."""
        return self.model_dump(mode="json")
