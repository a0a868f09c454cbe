"""CLI package.

Holds the ``arc`` console script. Command behavior lives in
:mod:`arcanist.workflows`; this package only sets up logging and hands
the raw argument list to the bootstrap.
"""
from __future__ import annotations
