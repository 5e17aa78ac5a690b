# services/__init__.py

# This file makes the 'services' directory a Python package and
# exposes its leaf modules for import.

from . import sync_tracker
from . import selection
from . import reconciliation
