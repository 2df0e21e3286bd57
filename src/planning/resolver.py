"""Argument resolution for the variadic ``add`` call.

``add`` takes up to four positional arguments in the logical order
``(pre_logic?, command, options?, error_handler?)``. The slots have
mutually exclusive kinds, so a single left-to-right pass classifies
them:

1. A callable first argument is ``pre_logic``.
2. The next argument is ``command`` and must be a non-empty string.
3. A mapping right after ``command`` is ``options``.
4. A callable after that is ``error_handler``.

Anything left over is rejected. ``None`` in any slot counts as an
omitted argument.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from src.planning.errors import InvalidArgument
from src.planning.models import Step
from src.planning.predicates import is_defined, is_function, is_object, is_string

logger = logging.getLogger(__name__)

MAX_ARGUMENTS = 4


def validate_command(command: Any) -> str:
    """Check that command is a usable shell command string.

    Raises:
        InvalidArgument: If command is not a non-empty string.
    """
    if not is_string(command):
        raise InvalidArgument(
            f"given command is not a string: {command!r}", value=command
        )
    if not command.strip():
        raise InvalidArgument("given command is empty", value=command)
    return command


def build_step(
    command: Any,
    pre_logic: Any = None,
    options: Any = None,
    error_handler: Any = None,
) -> Step:
    """Build a Step from named parts, failing with InvalidArgument.

    Args:
        command: Shell command to run.
        pre_logic: Called with the prior step's stdout before the command.
        options: Mapping passed through to the process runner.
        error_handler: Called with ``(error, stderr)`` if the command fails.

    Returns:
        The validated Step.
    """
    command = validate_command(command)
    if is_defined(pre_logic) and not is_function(pre_logic):
        raise InvalidArgument(f"pre_logic is not callable: {pre_logic!r}", value=pre_logic)
    if is_defined(options) and not is_object(options):
        raise InvalidArgument(f"options is not a mapping: {options!r}", value=options)
    if is_defined(error_handler) and not is_function(error_handler):
        raise InvalidArgument(
            f"error_handler is not callable: {error_handler!r}", value=error_handler
        )

    try:
        return Step(
            command=command,
            pre_logic=pre_logic,
            options=dict(options) if options is not None else None,
            error_handler=error_handler,
        )
    except ValidationError as e:
        raise InvalidArgument(f"invalid step for {command!r}: {e}") from e


def resolve_step_args(*args: Any) -> Step:
    """Resolve positional ``add`` arguments into a Step.

    Args:
        *args: Up to four values, see the module docstring.

    Returns:
        A Step with only the supplied fields populated.

    Raises:
        InvalidArgument: If no string command can be identified, or if
            arguments remain after every slot has been classified.
    """
    if len(args) > MAX_ARGUMENTS:
        raise InvalidArgument(
            f"add() takes at most {MAX_ARGUMENTS} arguments ({len(args)} given)"
        )

    remaining = [arg for arg in args if is_defined(arg)]
    pre_logic = None
    options: Mapping[str, Any] | None = None
    error_handler = None

    if remaining and is_function(remaining[0]):
        pre_logic = remaining.pop(0)

    if not remaining:
        raise InvalidArgument("no command given")
    command = validate_command(remaining.pop(0))

    if remaining and is_object(remaining[0]):
        options = remaining.pop(0)

    if remaining and is_function(remaining[0]):
        error_handler = remaining.pop(0)

    if remaining:
        raise InvalidArgument(
            f"unexpected argument after command {command!r}: {remaining[0]!r}",
            value=remaining[0],
        )

    logger.debug(
        "Resolved step %r (pre_logic=%s, options=%s, error_handler=%s)",
        command,
        pre_logic is not None,
        options is not None,
        error_handler is not None,
    )
    return build_step(command, pre_logic, options, error_handler)
