"""Keyword/positional option classification for constructor argument lists.

Option kinds are inferred from their default value:

* ``bool``             - a flag, set by its bare name appearing in ``args``
* tuple of ``str``     - a choice, set by any of its choices appearing in
                         ``args``; the first entry is the default
* anything else        - a key/value pair, set by ``"name", value`` in ``args``

Keyword arguments set options by name and take precedence over positional
forms. Positional entries that are not options are returned, in order, as the
residue.
"""

from typing import Any, Dict, List, Mapping, Sequence, Tuple

from .errors import UnrecognizedArgument


def _is_choice(default: Any) -> bool:
    return isinstance(default, tuple) and len(default) > 0 and all(isinstance(c, str) for c in default)


def parse_options(
    defaults: Mapping[str, Any],
    args: Sequence[Any],
    kwargs: Mapping[str, Any] = None,
) -> Tuple[Dict[str, Any], List[Any]]:
    """Split ``args`` into resolved options and positional residue.

    Args:
        defaults: mapping of option names to default values
        args: flat positional argument list
        kwargs: keyword arguments, matched against option names

    Returns:
        ``(options, residue)`` where ``options`` has one entry per name in
        ``defaults``

    Raises:
        UnrecognizedArgument: for an unknown keyword, an invalid choice, or a
            key/value option missing its value
    """
    opts: Dict[str, Any] = {}
    choices: Dict[str, str] = {}
    for name, default in defaults.items():
        if _is_choice(default):
            opts[name] = default[0]
            for choice in default:
                choices[choice] = name
        else:
            opts[name] = default

    residue: List[Any] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if isinstance(arg, str):
            default = defaults.get(arg)
            if isinstance(default, bool):
                opts[arg] = True
                i += 1
                continue
            if arg in choices:
                opts[choices[arg]] = arg
                i += 1
                continue
            if arg in defaults and not _is_choice(default):
                if i + 1 >= len(args):
                    raise UnrecognizedArgument(f"option '{arg}' requires a value")
                opts[arg] = args[i + 1]
                i += 2
                continue
        residue.append(arg)
        i += 1

    for name, value in (kwargs or {}).items():
        if name not in defaults:
            raise UnrecognizedArgument(f"unknown option '{name}'")
        default = defaults[name]
        if _is_choice(default) and value not in default:
            raise UnrecognizedArgument(f"option '{name}' must be one of {default}, got {value!r}")
        opts[name] = value

    return opts, residue
