"""
Inventory alert models as served by the backend dashboard endpoint.

Wire payloads use the backend's camelCase field names; attributes are
snake_case. `populate_by_name` lets callers build models by attribute name.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

NO_SUPPLIER_NAME = "No supplier"


# ── Enumerations ───────────────────────────────────────────────────────────


class AlertType(str, Enum):
    """Categories of alerts the backend raises."""

    LOW_STOCK = "STOCK_BAJO"
    REORDER_POINT = "PUNTO_REORDEN"
    CRITICAL_STOCK = "STOCK_CRITICO"
    OVERSTOCK = "SOBRESTOCK"
    OBSOLETE = "PRODUCTO_OBSOLETO"
    EXPIRY_NEAR = "VENCIMIENTO_PROXIMO"
    EXPIRY_PAST = "VENCIMIENTO_VENCIDO"
    ANOMALOUS_DEMAND = "DEMANDA_ANOMALA"
    HIGH_COST = "COSTO_ELEVADO"
    HIGH_SHRINKAGE = "MERMA_ALTA"
    SUPPLIER_DELAY = "PROVEEDOR_RETRASO"


_CRITICALITY_RANK = {
    "BAJA": 0,
    "MEDIA": 1,
    "ALTA": 2,
    "CRITICA": 3,
}


class Criticality(str, Enum):
    """Alert priority. Ordered: LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = "BAJA"
    MEDIUM = "MEDIA"
    HIGH = "ALTA"
    CRITICAL = "CRITICA"

    @property
    def rank(self) -> int:
        return _CRITICALITY_RANK[self.value]

    def __lt__(self, other):
        if not isinstance(other, Criticality):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Criticality):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Criticality):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Criticality):
            return NotImplemented
        return self.rank >= other.rank


class AlertState(str, Enum):
    """Alert lifecycle state."""

    PENDING = "PENDIENTE"
    IN_PROCESS = "EN_PROCESO"
    RESOLVED = "RESUELTA"
    IGNORED = "IGNORADA"
    ESCALATED = "ESCALADA"

    @property
    def is_terminal(self) -> bool:
        return self in (AlertState.RESOLVED, AlertState.IGNORED)


# ── Nested references ──────────────────────────────────────────────────────


class SupplierRef(BaseModel):
    supplier_id: int = Field(alias="proveedorId")
    trade_name: str = Field(alias="nombreComercial")
    lead_time_days: int | None = Field(default=None, alias="tiempoEntregaDias")
    contact: str | None = Field(default=None, alias="contacto")
    phone: str | None = Field(default=None, alias="telefono")

    model_config = {"populate_by_name": True}


class ProductRef(BaseModel):
    product_id: int = Field(alias="productoId")
    name: str = Field(alias="nombre")
    sku: str | None = Field(default=None, alias="codigoSKU")
    description: str | None = Field(default=None, alias="descripcion")
    acquisition_cost: float | None = Field(default=None, alias="costoAdquisicion")
    supplier: SupplierRef | None = Field(default=None, alias="proveedor")

    model_config = {"populate_by_name": True}


class AssignedUser(BaseModel):
    user_id: int = Field(alias="usuarioId")
    name: str = Field(alias="nombre")
    email: str | None = None

    model_config = {"populate_by_name": True}


# ── Alert ──────────────────────────────────────────────────────────────────


class Alert(BaseModel):
    """
    A pending inventory alert with the denormalized supplier and cost fields
    the dashboard endpoint adds at the payload root.
    """

    alert_id: int = Field(alias="alertaId")
    alert_type: AlertType = Field(alias="tipoAlerta")
    criticality: Criticality = Field(alias="nivelCriticidad")
    message: str = Field(default="", alias="mensaje")
    product: ProductRef = Field(alias="producto")
    current_stock: int | None = Field(default=None, alias="stockActual")
    minimum_stock: int | None = Field(default=None, alias="stockMinimo")
    suggested_quantity: int | None = Field(default=None, alias="cantidadSugerida")
    assigned_user: AssignedUser | None = Field(default=None, alias="usuarioAsignado")
    state: AlertState = Field(default=AlertState.PENDING, alias="estado")
    generated_at: datetime = Field(alias="fechaGeneracion")
    resolved_at: datetime | None = Field(default=None, alias="fechaResolucion")
    action_taken: str | None = Field(default=None, alias="accionTomada")
    notes: str | None = Field(default=None, alias="observaciones")

    # Dashboard denormalization
    root_supplier_id: int | None = Field(default=None, alias="proveedorId")
    root_supplier_name: str | None = Field(default=None, alias="proveedorNombreComercial")
    root_supplier_lead_time: int | None = Field(default=None, alias="proveedorTiempoEntrega")
    root_acquisition_cost: float | None = Field(default=None, alias="costoAdquisicion")
    root_sku: str | None = Field(default=None, alias="codigoSKU")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def supplier_id(self) -> int | None:
        if self.product.supplier is not None:
            return self.product.supplier.supplier_id
        return self.root_supplier_id

    @property
    def supplier_name(self) -> str:
        if self.product.supplier is not None and self.product.supplier.trade_name:
            return self.product.supplier.trade_name
        return self.root_supplier_name or NO_SUPPLIER_NAME

    @property
    def supplier_lead_time(self) -> int | None:
        if self.product.supplier is not None and self.product.supplier.lead_time_days is not None:
            return self.product.supplier.lead_time_days
        return self.root_supplier_lead_time

    @property
    def unit_cost(self) -> float:
        if self.product.acquisition_cost is not None:
            return self.product.acquisition_cost
        return self.root_acquisition_cost or 0.0

    @property
    def sku(self) -> str | None:
        return self.product.sku or self.root_sku

    @property
    def estimated_cost(self) -> float:
        """Suggested quantity × acquisition cost; unknown values count as zero."""
        return (self.suggested_quantity or 0) * self.unit_cost


class InProcessBatch(BaseModel):
    """Response of the batch "mark in process" endpoint."""

    success: bool = Field(default=False, alias="exitoso")
    updated_alerts: list[Alert] = Field(default_factory=list, alias="alertasActualizadas")
    total_updated: int = Field(default=0, alias="totalActualizadas")
    message: str = Field(default="", alias="mensaje")

    model_config = {"populate_by_name": True, "frozen": True}
