"""Bootstrap machinery: argument preprocessing, working copy discovery,
library loading, requirement escalation, dispatch and failure reporting.

Submodules in core/ should not import from cli/.
"""
from __future__ import annotations
