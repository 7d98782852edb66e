from __future__ import annotations

from typing import Any, Dict, Mapping, Optional


def deep_merge(base: Mapping[str, Any], override: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Recursively merge two mappings.
    - Dicts are merged
    - All other values (including lists, so tier tables replace wholesale) are replaced
    - If override is None, returns a copy of base
    """
    result: Dict[str, Any] = dict(base)

    if override is None:
        return result

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


__all__ = ["deep_merge"]
