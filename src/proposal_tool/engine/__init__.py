"""Engine subpackage - grouping, selection and pricing logic."""
from .pricing_engine import PricingEngine, margin, margin_percent
from .models import Upgrade, SpecialRequestLine, PricingRequest, PricingSummary, LineItem
from .grouping import group_upgrades, selection_key
from .selection import toggle_selection, normalize_selection

__all__ = [
    'PricingEngine', 'PricingRequest', 'PricingSummary', 'LineItem',
    'Upgrade', 'SpecialRequestLine', 'margin', 'margin_percent',
    'group_upgrades', 'selection_key', 'toggle_selection', 'normalize_selection',
]
