"""Serial-number based classification of host serial ports."""

from __future__ import annotations

from inputmodule.core.model import DetectedPort, ModuleMatch, ModuleRule, Profile


def _best_rule(serial_number: str, profile: Profile) -> ModuleRule | None:
    # Serials are compared exactly as the host reports them.
    if not serial_number.startswith(profile.vendor_prefix):
        return None

    best = None
    for rule in profile.modules:
        if not serial_number.startswith(rule.serial_prefix):
            continue
        if best is None or len(rule.serial_prefix) > len(best.serial_prefix):
            best = rule
    return best


def match_port(port: DetectedPort, profile: Profile) -> ModuleMatch | None:
    if not port.serial_number:
        return None
    rule = _best_rule(port.serial_number, profile)
    if rule is None:
        return None
    return ModuleMatch(port=port, module_type=rule.module_type, profile=profile)


def classify_port(port: DetectedPort, profiles: dict[str, Profile]) -> ModuleMatch | None:
    """Match ``port`` against every profile; the longest module prefix wins.

    Equal prefix lengths from different profiles resolve to the lower profile id.
    """
    if not port.serial_number:
        return None

    best: tuple[ModuleRule, Profile] | None = None
    for profile_id in sorted(profiles):
        profile = profiles[profile_id]
        rule = _best_rule(port.serial_number, profile)
        if rule is None:
            continue
        if best is None or len(rule.serial_prefix) > len(best[0].serial_prefix):
            best = (rule, profile)
    if best is None:
        return None
    rule, profile = best
    return ModuleMatch(port=port, module_type=rule.module_type, profile=profile)
