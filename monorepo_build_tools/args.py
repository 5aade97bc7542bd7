"""Composing command line arguments for wrapped tools.

Arguments typed by the user are threaded through a list of transforms which
may add defaults before them, append arguments after them or remove some of
them, e.g. options only our own logger understands.
"""

import re
import sys
from dataclasses import dataclass, field, replace
from typing import Callable, List, Optional, Pattern, Sequence, Union


@dataclass(frozen=True)
class CliArgs:
    """Arguments of a tool invocation, in three groups.

    Attributes:
        pre_args: Extra arguments that go before the user's arguments.
        input_args: Arguments as passed in by the user, possibly modified by
            earlier transforms.
        post_args: Extra arguments that go after the user's arguments.
    """
    pre_args: List[str] = field(default_factory=list)
    input_args: List[str] = field(default_factory=list)
    post_args: List[str] = field(default_factory=list)


CliArgsTransform = Callable[[CliArgs], CliArgs]
ArgMatcher = Union[str, Pattern[str]]


def includes_any_of(target: Sequence[str], has_any_of_args: Sequence[str]) -> bool:
    return any(variant in target for variant in has_any_of_args)


def remove_args_from(
    target: Sequence[str], args: Sequence[ArgMatcher], num_values: int = 0
) -> List[str]:
    """Remove the first occurrence of each of ``args`` and ``num_values`` values after it."""
    result = list(target)
    for arg in args:
        for index, value in enumerate(result):
            matches = value == arg if isinstance(arg, str) else re.search(arg, value)
            if matches:
                del result[index: index + num_values + 1]
                break
    return result


def remove_input_args(args: Sequence[ArgMatcher], num_values: int = 0) -> CliArgsTransform:
    def transform(state: CliArgs) -> CliArgs:
        return replace(state, input_args=remove_args_from(state.input_args, args, num_values))

    return transform


def set_default_args(
    args: Sequence[str],
    values: Sequence[str] = (),
    condition: Optional[Callable[[CliArgs], bool]] = None,
) -> CliArgsTransform:
    """Add ``args[0]`` with ``values`` unless the user passed any spelling of it.

    Args:
        args: Spellings of the option, the first one is used when adding it.
        values: Values following the option.
        condition: Only add the default when this returns True.
    """
    if not args:
        raise ValueError("At least one spelling of the option is required")

    def transform(state: CliArgs) -> CliArgs:
        if condition is not None and not condition(state):
            return state
        if includes_any_of(state.input_args, args):
            return state
        return replace(state, pre_args=[*state.pre_args, args[0], *values])

    return transform


def cli_args_pipe(transforms: Sequence[CliArgsTransform], input_args: Sequence[str]) -> List[str]:
    state = CliArgs(input_args=list(input_args))
    for transform in transforms:
        state = transform(state)
    return [*state.pre_args, *state.input_args, *state.post_args]


def task_args_pipe(
    transforms: Sequence[CliArgsTransform], input_args: Optional[Sequence[str]] = None
) -> List[str]:
    """Like ``cli_args_pipe`` but defaults to our own arguments.

    ``--log-level`` and ``--verbosity`` are consumed by our logger and never
    passed on.
    """
    if input_args is None:
        input_args = sys.argv[1:]
    return cli_args_pipe(
        [
            remove_input_args(["--log-level"], num_values=1),
            remove_input_args(["--verbosity"], num_values=1),
            *transforms,
        ],
        input_args,
    )
