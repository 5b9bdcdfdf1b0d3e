import sys
import xml.etree.ElementTree as ET
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

GENERATOR_DIR = Path(__file__).resolve().parent.parent
if str(GENERATOR_DIR) not in sys.path:
    sys.path.insert(0, str(GENERATOR_DIR))

import imgui_wrapper_gen as gen  # noqa: E402


@pytest.fixture(autouse=True)
def reset_logger_handlers() -> Iterator[None]:
    # main() binds handlers to the sys.stdout/sys.stderr of the current test.
    yield
    for handler in list(gen.logger.handlers):
        gen.logger.removeHandler(handler)
    gen.logger.propagate = True


@pytest.fixture
def make_surface_root() -> Callable[..., ET.Element]:
    def _make_surface_root(
        inner_xml: str, namespace: str = "ImGuiNET", name: str = "ImGui"
    ) -> ET.Element:
        return ET.fromstring(
            f'<surface namespace="{namespace}" name="{name}">{inner_xml}</surface>'
        )

    return _make_surface_root


@pytest.fixture
def write_surface(tmp_path: Path) -> Callable[[str], Path]:
    def _write_surface(inner_xml: str) -> Path:
        path = tmp_path / "surface.xml"
        path.write_text(
            f'<surface namespace="ImGuiNET" name="ImGui">{inner_xml}</surface>\n',
            encoding="utf-8",
        )
        return path

    return _write_surface


@pytest.fixture
def make_param() -> Callable[..., gen.ParameterDescriptor]:
    def _make_param(
        name: str,
        type_name: str = "System.Int32",
        pass_mode: str = gen.PASS_BY_VALUE,
    ) -> gen.ParameterDescriptor:
        return gen.ParameterDescriptor(
            name=name, type_name=type_name, pass_mode=pass_mode
        )

    return _make_param


@pytest.fixture
def make_method() -> Callable[..., gen.MethodDescriptor]:
    def _make_method(
        name: str,
        return_type: str = "System.Void",
        params: tuple[gen.ParameterDescriptor, ...] = (),
        visibility: str = "public",
    ) -> gen.MethodDescriptor:
        return gen.MethodDescriptor(
            name=name,
            return_type=return_type,
            params=params,
            visibility=visibility,
        )

    return _make_method
