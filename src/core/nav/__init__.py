"""Shadow NAV and NAV bridge attribution."""

from src.core.nav.bridge import bridge_total, calculate_shadow_nav_card

__all__ = ["bridge_total", "calculate_shadow_nav_card"]
