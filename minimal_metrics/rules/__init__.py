from minimal_metrics.rules.loader import load_rules
from minimal_metrics.rules.models import Rules

__all__ = ["Rules", "load_rules"]
