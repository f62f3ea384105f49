from dataclasses import dataclass


@dataclass
class Service:
    """Represents a single bookable salon service from the catalog."""

    id: int
    title: str
    unit_price: float = 0.0
    category: str = ""
    is_active: bool = True


@dataclass(frozen=True)
class ServiceSelection:
    """A service chosen for the course; quantity is units per session (visits/areas)."""

    service_id: int
    unit_price: float
    quantity: int = 1

    @property
    def session_cost(self) -> float:
        return float(self.unit_price) * self.quantity


@dataclass(frozen=True)
class FreeZone:
    """A service area granted at zero cost; valued for display only."""

    service_id: int
    unit_price: float
    quantity: int = 1
    title: str = ""

    @property
    def value(self) -> float:
        return float(self.unit_price) * self.quantity
