"""Core data models for ics-baremetal.

Defines the schemas for:
- The uniform API response envelope
- Inventory items (SKU offerings per location)
- Addon catalogs (operating systems, licenses, support levels)
- Server orders and their results
- Provisioned servers
- SSH keys
- Resource state (declared spec + computed fields) and diagnostics
"""

from __future__ import annotations

import enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class Severity(enum.StrEnum):
    WARNING = "warning"
    ERROR = "error"


# --- API envelope ---


class APIEnvelope(BaseModel):
    """Uniform response wrapper: ``{statusCode, message, data}``."""

    model_config = ConfigDict(populate_by_name=True)

    status_code: int = Field(0, alias="statusCode")
    message: str = ""
    data: Any = None


# --- Inventory ---


class InventoryMetadata(BaseModel):
    name: str = ""
    description: str = ""
    value: str = ""


class InventoryItem(BaseModel):
    """A SKU offering at a specific location.

    Read-only: refreshed from the backend on every resolution.
    """

    sku_id: int = 0
    quantity: int = 0
    auto_provision_quantity: int = 0
    datacenter_id: int = 0
    region_id: int = 0
    location_code: str = ""
    cpu_brand: str = ""
    cpu_model: str = ""
    cpu_clock_speed_ghz: float = 0.0
    cpu_cores: int = 0
    cpu_count: int = 0
    total_ssd_size_gb: int = 0
    total_hdd_size_gb: int = 0
    total_nvme_size_gb: int = 0
    raid_enabled: bool = False
    total_ram_gb: int = 0
    nic_speed_mbps: int = 0
    qt_product_id: int = 0
    status: str = ""
    metadata: list[InventoryMetadata] = Field(default_factory=list)
    currency_code: str = ""
    sku_product_name: str = ""
    price: str = ""
    price_hourly: str = ""
    hourly_enabled: bool = False

    @property
    def available(self) -> bool:
        """True when at least one unit can be provisioned unattended."""
        return self.auto_provision_quantity > 0


# --- Addon catalog ---


class OperatingSystem(BaseModel):
    name: str
    os_type: str = ""
    product_code: str
    price: float = 0.0
    price_per_core: float | None = None
    price_hourly: float = 0.0
    hourly_enabled: bool = False


class License(BaseModel):
    name: str
    product_code: str
    price: float = 0.0
    price_hourly: float = 0.0
    hourly_enabled: bool = False


class SupportLevel(BaseModel):
    name: str
    description: str = ""
    product_code: str
    price: float = 0.0
    price_hourly: float = 0.0
    hourly_enabled: bool = False


class OperatingSystemGroup(BaseModel):
    name: str = ""
    required: str = ""
    products: list[OperatingSystem] = Field(default_factory=list)


class LicenseGroup(BaseModel):
    name: str = ""
    products: list[License] = Field(default_factory=list)


class SupportLevelGroup(BaseModel):
    name: str = ""
    products: list[SupportLevel] = Field(default_factory=list)


class AddonCatalog(BaseModel):
    """Installable addons for one (SKU, location) pair."""

    operating_systems: OperatingSystemGroup = Field(default_factory=OperatingSystemGroup)
    licenses: LicenseGroup = Field(default_factory=LicenseGroup)
    support_levels: SupportLevelGroup = Field(default_factory=SupportLevelGroup)

    @property
    def operating_system_names(self) -> list[str]:
        return [os_item.name for os_item in self.operating_systems.products]


# --- Orders ---


class ServerOrderRequest(BaseModel):
    """Order payload. Quantity and billing mode are fixed by the orchestrator."""

    sku_product_name: str
    quantity: int = 1
    location_code: str
    operating_system_product_code: str
    hostname: str | None = None
    bill_hourly: bool = True
    ssh_key_ids: list[int] | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ServerOrderResult(BaseModel):
    order_service_ids: list[int] = Field(default_factory=list)


# --- Servers ---


class Server(BaseModel):
    """A provisioned bare-metal server as reported by the server list."""

    id: str
    hostname: str = ""
    mac_address: str = ""
    public_ip: str = ""
    service_id: int
    service_description: str = ""
    plan_id: int = 0
    datacenter_name: str = ""
    datacenter_id: int = 0
    location_id: int = 0
    friendly_name: str = ""
    vendor: str = ""
    server_type: str = ""
    bill_hourly: bool = False
    root_password: str = Field("", repr=False)


# --- SSH keys ---


class AssignedServer(BaseModel):
    server_id: str = ""
    service_id: int = 0
    hostname: str = ""
    datacenter_name: str = ""


class SSHKey(BaseModel):
    id: int
    label: str
    key: str = ""
    created_at: int = 0
    updated_at: int = 0
    assigned_servers: list[AssignedServer] = Field(default_factory=list)


class SSHKeyCreateRequest(BaseModel):
    public_key: str
    label: str


class SSHKeyCreateResult(BaseModel):
    id: int = 0


# --- Resource state ---


class BareMetalServerSpec(BaseModel):
    """User-declared server configuration."""

    instance_type: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)
    operating_system: str = Field(..., min_length=1)
    hostname: str | None = None
    friendly_name: str | None = None
    ssh_key_labels: list[str] | None = None


class BareMetalServerState(BareMetalServerSpec):
    """Declared configuration plus the fields the backend computes."""

    id: str = ""
    service_id: int = 0
    public_ip: str = ""
    root_password: str = Field("", repr=False)
    service_description: str = ""
    plan_id: int = 0
    datacenter_name: str = ""
    datacenter_id: int = 0
    location_id: int = 0
    server_type: str = ""


class SSHKeySpec(BaseModel):
    label: str = Field(..., min_length=1)
    public_key: str = Field(..., min_length=1)


class SSHKeyState(SSHKeySpec):
    id: int = 0
    created_at: int = 0
    updated_at: int = 0
    assigned_servers: list[AssignedServer] = Field(default_factory=list)


# --- Diagnostics ---


class Diagnostic(BaseModel):
    """A warning or error attached to a lifecycle operation."""

    severity: Severity
    summary: str
    detail: str = ""


StateT = TypeVar("StateT")


class OperationResult(BaseModel, Generic[StateT]):
    """The outcome of a lifecycle operation: resulting state plus diagnostics."""

    state: StateT | None = None
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return any(d.severity == Severity.ERROR for d in self.diagnostics)

    def warn(self, summary: str, detail: str = "") -> None:
        self.diagnostics.append(
            Diagnostic(severity=Severity.WARNING, summary=summary, detail=detail)
        )
