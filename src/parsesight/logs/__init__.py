"""Logs package: timestamped cast parsing, gap detection, weave classification."""

from parsesight.logs.parser import is_light_attack, parse_combat_log
from parsesight.logs.weaving import validate_weaving

__all__ = ["is_light_attack", "parse_combat_log", "validate_weaving"]
