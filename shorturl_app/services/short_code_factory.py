"""
Short code strategy selection.

SHORT_CODE_STRATEGY names the generator used for new links. Strategies are
stateless, so one instance per name is shared by every request.
"""

from functools import lru_cache
from typing import Dict, Optional, Type

from shorturl_app.config import settings
from shorturl_app.services.short_code_strategies import (
    ShortCodeStrategy,
    URLLengthHexStrategy,
)

STRATEGIES: Dict[str, Type[ShortCodeStrategy]] = {
    "url_length_hex": URLLengthHexStrategy,
}


@lru_cache()
def get_short_code_strategy(name: Optional[str] = None) -> ShortCodeStrategy:
    """
    Shared strategy instance for a registered name.

    Raises:
        ValueError: name is not in STRATEGIES
    """
    name = name or settings.short_code_strategy
    try:
        strategy_class = STRATEGIES[name]
    except KeyError:
        raise ValueError(f"Unknown short code strategy: {name}")
    return strategy_class()
