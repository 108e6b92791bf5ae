"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
The engine never touches the database; services convert ORM rows into
these records before grouping, selecting or pricing.
"""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TraceStep:
    """A single step in the pricing resolution trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class Upgrade:
    """A single upgrade option offered for a home template."""
    id: int
    category: str
    location: Optional[str]
    parent_selection: Optional[str]
    choice_title: str
    builder_cost: float = 0.0
    client_price: float = 0.0
    margin: float = 0.0  # percent, e.g. 23.5
    template: Optional[str] = None

    @classmethod
    def from_record(cls, record) -> 'Upgrade':
        """Build from any object or mapping exposing the upgrade columns."""
        get = record.get if isinstance(record, dict) else (lambda k, d=None: getattr(record, k, d))
        return cls(
            id=get('id'),
            category=get('category') or '',
            location=get('location'),
            parent_selection=get('parent_selection'),
            choice_title=get('choice_title') or '',
            builder_cost=float(get('builder_cost') or 0),
            client_price=float(get('client_price') or 0),
            margin=float(get('margin') or 0),
            template=get('template'),
        )


@dataclass
class SpecialRequestLine:
    """An ad hoc line item attached to a proposal."""
    description: str
    builder_cost: float = 0.0
    client_price: float = 0.0
    id: Optional[int] = None


@dataclass
class LineItem:
    """A single priced line in a proposal summary."""
    kind: str  # "upgrade" or "special_request"
    title: str
    client_price: float
    category: Optional[str] = None
    location: Optional[str] = None
    parent_selection: Optional[str] = None
    builder_cost: Optional[float] = None
    margin: Optional[float] = None
    source_id: Optional[int] = None


@dataclass
class PricingRequest:
    """Everything needed to price a proposal."""
    base_price: float
    base_cost: float = 0.0
    lot_premium: float = 0.0
    sales_incentive: float = 0.0
    sales_incentive_enabled: bool = False
    design_studio_allowance: float = 0.0
    upgrades: list[Upgrade] = field(default_factory=list)
    special_requests: list[SpecialRequestLine] = field(default_factory=list)
    show_costs: bool = False


@dataclass
class PricingSummary:
    """Complete result of a proposal pricing calculation."""
    base_price: float
    lot_premium: float
    sales_incentive: float
    design_studio_allowance: float
    upgrades_total: float
    special_requests_total: float
    base_subtotal: float
    selections_subtotal: float
    grand_total: float
    lines: list[LineItem] = field(default_factory=list)
    show_costs: bool = False

    # Cost view only
    base_cost: Optional[float] = None
    upgrades_cost: Optional[float] = None
    special_requests_cost: Optional[float] = None
    total_cost: Optional[float] = None
    base_margin: Optional[float] = None
    upgrades_margin: Optional[float] = None
    overall_margin: Optional[float] = None

    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    @property
    def upgrade_lines(self) -> list[LineItem]:
        return [line for line in self.lines if line.kind == "upgrade"]

    @property
    def special_request_lines(self) -> list[LineItem]:
        return [line for line in self.lines if line.kind == "special_request"]

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the summary-level trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        """Add a summary-level warning."""
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)
