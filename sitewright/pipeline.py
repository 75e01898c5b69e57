"""
Text transform pipeline shared by the markup, stylesheet and script tasks.

A pipeline is an ordered mapping of step name to Step. Each step receives the
previous step's output text together with its own data and options. Steps
are built fresh for every run so no state carries over between files.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Union

Transform = Callable[[str, Any, Any], str]


@dataclass(frozen=True)
class Step:
    """A named transform with its own data and options."""
    transform: Transform
    data: Any = None
    options: Any = None

    def __call__(self, text: str) -> str:
        return self.transform(text, self.data, self.options)


def run_pipeline(text: str, steps: Union[Mapping[str, Step], Iterable[Step]]) -> str:
    """
    Thread text through the steps in insertion order and return the result.

    Errors raised by a step propagate unchanged.
    """
    if isinstance(steps, Mapping):
        steps = steps.values()
    for step in steps:
        text = step(text)
    return text
