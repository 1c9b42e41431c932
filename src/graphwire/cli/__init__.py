"""CLI package.

The ``cli`` sub-package holds the Click application.  Commands import the
library lazily so that ``graphwire --help`` stays fast.
"""
from __future__ import annotations
