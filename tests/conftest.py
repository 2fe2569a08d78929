from __future__ import annotations

from typing import Callable

import pytest

from kmpbindgen.models import InterfaceDescription


def _build_interface(namespace: str, crate_name: str | None = None) -> InterfaceDescription:
    return InterfaceDescription(
        namespace=namespace,
        crate_name=crate_name or f"{namespace}_crate",
        functions=(
            {
                "name": "add_numbers",
                "arguments": [{"name": "left", "type": "i32"}, {"name": "right", "type": "i32"}],
                "return_type": "i32",
            },
            {"name": "reset_state", "arguments": []},
        ),
        records=(
            {"name": "point_value", "fields": [{"name": "x_pos", "type": "f64"}, {"name": "label", "type": "string?"}]},
        ),
        enums=({"name": "color_mode", "variants": ["light", "dark_mode"]},),
    )


@pytest.fixture
def make_interface() -> Callable[..., InterfaceDescription]:
    """Build small interface descriptions with a couple of functions and types."""
    return _build_interface
