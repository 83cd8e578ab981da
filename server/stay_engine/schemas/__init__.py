"""Pydantic schemas for engine types and request/response validation."""

from .availability import *  # noqa: F403
from .booking import *  # noqa: F403
from .common import *  # noqa: F403
from .estimate import *  # noqa: F403
from .health import *  # noqa: F403
from .package import *  # noqa: F403
