"""Import all rule modules to trigger @register_rule decorators.

Import order is registration order.
"""

from openx_config.validation.rules import structural  # noqa: F401
from openx_config.validation.rules import venue  # noqa: F401
from openx_config.validation.rules import market_data  # noqa: F401
from openx_config.validation.rules import expiry  # noqa: F401
from openx_config.validation.rules import storage  # noqa: F401
from openx_config.validation.rules import engines  # noqa: F401
