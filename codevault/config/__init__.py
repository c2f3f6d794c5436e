"""Configuration settings and constants for codevault.

Everything lives in `settings`; this package re-exports it so application
code can write `from codevault.config import SALT_LENGTH`.
"""

from .settings import *  # noqa: F401,F403
from .settings import __all__  # noqa: F401
