"""Portfolio models: positions and the derived dashboard summaries.

Positions arrive from the persistence backend; everything else is computed
by ``Wealth_Flow.analysis.portfolio``.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer

from Wealth_Flow.models.enums import HealthSeverity, PositionClass, RebalanceAction


class Position(BaseModel):
    """A holding in a portfolio.

    Frozen; price refreshes produce a copy via ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    name: str = ""
    quantity: Decimal
    entry_price: Decimal
    current_price: Decimal | None = None
    sector: str = "Other"
    classification: PositionClass = PositionClass.OTHER
    target_percentage: Decimal = Field(default=Decimal("0"), ge=0, le=100)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def mark_price(self) -> Decimal:
        """Latest known price, falling back to the entry price when unquoted or zero."""
        if self.current_price is None or self.current_price <= 0:
            return self.entry_price
        return self.current_price

    @computed_field  # type: ignore[prop-decorator]
    @property
    def market_value(self) -> Decimal:
        """Quantity times mark price."""
        return self.quantity * self.mark_price

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cost_basis(self) -> Decimal:
        """Quantity times entry price."""
        return self.quantity * self.entry_price

    @field_serializer("quantity", "entry_price", "current_price", "target_percentage")
    def serialize_decimal(self, value: Decimal | None) -> str | None:
        """Serialize Decimal fields as strings to preserve precision."""
        return None if value is None else str(value)


class PositionWeight(BaseModel):
    """A position's share of total portfolio value."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    name: str
    value: Decimal
    weight_pct: Decimal


class SectorAllocation(BaseModel):
    """Aggregate value and share of one sector."""

    model_config = ConfigDict(frozen=True)

    sector: str
    value: Decimal
    percentage: Decimal


class RebalanceRecommendation(BaseModel):
    """Trade needed to move one position to its target weight."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    current_percentage: Decimal
    target_percentage: Decimal
    difference: Decimal
    action: RebalanceAction
    quantity_to_trade: Decimal


class HealthCheck(BaseModel):
    """A single health-check outcome with a human-readable message."""

    model_config = ConfigDict(frozen=True)

    severity: HealthSeverity
    message: str


class Underperformer(BaseModel):
    """A losing position and its return in percent."""

    model_config = ConfigDict(frozen=True)

    ticker: str
    return_pct: Decimal


class PortfolioHealth(BaseModel):
    """Result of running every health check over a portfolio."""

    model_config = ConfigDict(frozen=True)

    checks: list[HealthCheck]
    underperformers: list[Underperformer]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def alerts(self) -> list[str]:
        """Messages of checks with ALERT severity."""
        return [c.message for c in self.checks if c.severity == HealthSeverity.ALERT]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def warnings(self) -> list[str]:
        """Messages of checks with WARNING severity."""
        return [c.message for c in self.checks if c.severity == HealthSeverity.WARNING]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def passed(self) -> int:
        """Number of checks that passed."""
        return sum(1 for c in self.checks if c.severity == HealthSeverity.OK)
