"""ImGui.NET static wrapper generator for MoonSharp.

Reads the public method surface of ImGuiNET.ImGui from a reflection manifest
and emits a C# static class that forwards every method to ImGui, with
prettified parameter names and the MoonSharp user-data annotation so the class
can be registered with an embedded Lua interpreter.

Usage:
    python imgui_wrapper_gen.py MyNameSpace path/to/ImGuiWrapper.cs
"""

import logging
import sys
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console

TOOL_ROOT = Path(__file__).resolve().parent
DEFAULT_SURFACE_XML = TOOL_ROOT / "surfaces" / "imgui_net.xml"

logger = logging.getLogger("imgui_wrapper_gen")


# ===--- CLI config contracts ---=== #


@dataclass(frozen=True)
class WrapperConfig:
    namespace_name: str
    output_path: Path


VALID_ERROR_CODES = {
    "NOT_ENOUGH_ARGUMENTS",
    "TOO_MANY_ARGUMENTS",
}
EXPECTED_ARGUMENT_COUNT = 2
USAGE_EXAMPLE = (
    'Example: imgui-wrapper-gen MyNameSpace "C:\\Program Files\\MyProgram\\ImGuiWrapper.cs"'
)


class ConfigError(Exception):
    def __init__(self, code: str, message: str, suggestion: str | None = None):
        if code not in VALID_ERROR_CODES:
            raise ValueError(f"Unknown config error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion


def validate_arguments(argv: list[str]) -> WrapperConfig:
    if len(argv) < EXPECTED_ARGUMENT_COUNT:
        raise ConfigError(
            "NOT_ENOUGH_ARGUMENTS",
            "ERROR: Not enough arguments. You must provide namespace name "
            "and output path separated by whitespace.",
            USAGE_EXAMPLE,
        )
    if len(argv) > EXPECTED_ARGUMENT_COUNT:
        raise ConfigError(
            "TOO_MANY_ARGUMENTS",
            "ERROR: Too many arguments. You must provide exactly 2 arguments: "
            "namespace name and output path separated by whitespace.",
            USAGE_EXAMPLE,
        )
    namespace_name, output_path = argv
    return WrapperConfig(namespace_name=namespace_name, output_path=Path(output_path))


# ===--- Generation errors ---=== #


class UnsupportedOperationError(NotImplementedError):
    """Raised for surface features the generator cannot render yet."""


class SurfaceError(ValueError):
    """Raised when a surface manifest does not describe a type."""


class EmptyIdentifierError(ValueError):
    pass


# ===--- Constants ---=== #

SCRIPT_HOST_ANNOTATION = "[MoonSharp.Interpreter.MoonSharpUserData]"
WRAPPER_CLASS_SUFFIX = "Wrapper"

# Inherited from System.Object; every reflected type exposes them.
IDENTITY_METHOD_NAMES = frozenset({"GetType", "ToString", "Equals", "GetHashCode"})

RESERVED_KEYWORDS = {"ref": "@ref", "in": "@in"}

PASS_BY_VALUE = "value"
PASS_BY_REF = "ref"
PASS_OUT = "out"

VOID_TYPE = "System.Void"
BYREF_MARKER = "&"
POINTER_MARKER = "*"
POINTER_SUPPORT_MESSAGE = "Pointer-returning methods cannot be wrapped yet."


# ===--- Data classes ---=== #


@dataclass(frozen=True)
class ParameterDescriptor:
    name: str
    type_name: str
    pass_mode: str = PASS_BY_VALUE

    @property
    def is_by_ref(self) -> bool:
        return self.pass_mode in (PASS_BY_REF, PASS_OUT)

    @property
    def element_type_name(self) -> str:
        """Type name with the by-reference marker stripped."""
        if self.is_by_ref:
            return self.type_name.removesuffix(BYREF_MARKER)
        return self.type_name


@dataclass(frozen=True)
class MethodDescriptor:
    name: str
    return_type: str
    params: tuple[ParameterDescriptor, ...] = ()
    visibility: str = "public"

    @property
    def is_public(self) -> bool:
        return self.visibility == "public"

    @property
    def returns_void(self) -> bool:
        return self.return_type == VOID_TYPE

    @property
    def returns_pointer(self) -> bool:
        return self.return_type.endswith(POINTER_MARKER)


@dataclass(frozen=True)
class TargetSurface:
    namespace: str
    name: str
    methods: tuple[MethodDescriptor, ...]

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}"


# ===--- Surface manifest parsing ---=== #


def parse_param(p: ET.Element) -> ParameterDescriptor:
    type_name = p.get("type", "")
    if type_name.endswith(BYREF_MARKER):
        pass_mode = PASS_OUT if p.get("out") == "true" else PASS_BY_REF
    else:
        pass_mode = PASS_BY_VALUE
    return ParameterDescriptor(p.get("name", ""), type_name, pass_mode)


def parse_method(m: ET.Element) -> MethodDescriptor | None:
    name = m.get("name")
    if not name:
        return None
    params = tuple(parse_param(p) for p in m.findall("param"))
    return MethodDescriptor(
        name=name,
        return_type=m.get("returns", VOID_TYPE),
        params=params,
        visibility=m.get("visibility", "public"),
    )


def parse_surface(root: ET.Element) -> TargetSurface:
    """Build a TargetSurface from a parsed <surface> manifest element.

    Methods keep document order, which stands in for reflection order.

    Raises:
        SurfaceError: If the root is not <surface> or lacks namespace/name.
    """
    if root.tag != "surface":
        raise SurfaceError(f"Expected <surface> root element, got <{root.tag}>")
    namespace = root.get("namespace")
    name = root.get("name")
    if not namespace or not name:
        raise SurfaceError("<surface> requires both 'namespace' and 'name' attributes")

    methods = []
    for m in root.findall("method"):
        parsed = parse_method(m)
        if parsed:
            methods.append(parsed)
    return TargetSurface(namespace=namespace, name=name, methods=tuple(methods))


def load_surface(path: Path) -> TargetSurface:
    tree = ET.parse(path)
    return parse_surface(tree.getroot())


# ===--- Method filter ---=== #


def is_identity_method(method: MethodDescriptor) -> bool:
    return method.name in IDENTITY_METHOD_NAMES


def filter_methods(
    methods: tuple[MethodDescriptor, ...] | list[MethodDescriptor],
    allow_pointers: bool = False,
) -> list[MethodDescriptor]:
    """Select the methods that get a forwarding declaration.

    Keeps public methods that are not System.Object identity methods and do
    not return a raw pointer. Overloads are all kept; the wrapper relies on
    C# overload resolution to tell them apart.

    Args:
        methods: Surface methods in enumeration order.
        allow_pointers: Request pointer-returning methods too. Not supported.

    Returns:
        Retained methods, enumeration order preserved.

    Raises:
        UnsupportedOperationError: If allow_pointers is True.
    """
    if allow_pointers:
        raise UnsupportedOperationError(POINTER_SUPPORT_MESSAGE)

    kept: list[MethodDescriptor] = []
    for method in methods:
        if not method.is_public or is_identity_method(method):
            continue
        if method.returns_pointer:
            continue
        kept.append(method)
    return kept


# ===--- Declaration rendering ---=== #


@dataclass(frozen=True)
class WrapperDeclaration:
    """One forwarding method of the generated wrapper class.

    Attributes:
        return_type: C# return type text, "void" for System.Void.
        name: Method name, shared by the wrapper and the target.
        signature_params: Typed parameter texts, e.g. "ref System.Boolean pOpen".
        call_args: Argument texts for the forwarded call, e.g. "ref pOpen".
        target: Short name of the type the call is forwarded to.
    """

    return_type: str
    name: str
    signature_params: tuple[str, ...]
    call_args: tuple[str, ...]
    target: str


def first_char_to_upper(word: str) -> str:
    if not word:
        raise EmptyIdentifierError("Identifier segment cannot be empty")
    return word[0].upper() + word[1:]


def prettify_param_name(name: str | None) -> str:
    """Fold a snake_case parameter name into camelCase.

    "p_open" -> "pOpen", "out_h" -> "outH". Names without underscores are
    returned as-is, and the first segment is never changed.

    Raises:
        EmptyIdentifierError: If name is empty/None, or a segment after the
            first is empty ("a__b", "size_").
    """
    if not name:
        raise EmptyIdentifierError("Parameter name cannot be empty")
    if "_" not in name:
        return name

    first, *rest = name.split("_")
    return first + "".join(first_char_to_upper(word) for word in rest)


def escape_keyword(name: str) -> str:
    return RESERVED_KEYWORDS.get(name, name)


def render_return_type(method: MethodDescriptor) -> str:
    if method.returns_void:
        return "void"
    return method.return_type


def render_param(param: ParameterDescriptor, with_type: bool = True) -> str:
    name = escape_keyword(prettify_param_name(param.name))
    prefix = f"{param.pass_mode} " if param.is_by_ref else ""
    if with_type:
        return f"{prefix}{param.element_type_name} {name}"
    return f"{prefix}{name}"


def build_declaration(surface_name: str, method: MethodDescriptor) -> WrapperDeclaration:
    return WrapperDeclaration(
        return_type=render_return_type(method),
        name=method.name,
        signature_params=tuple(render_param(p) for p in method.params),
        call_args=tuple(render_param(p, with_type=False) for p in method.params),
        target=surface_name,
    )


def format_declaration(decl: WrapperDeclaration) -> str:
    params = ", ".join(decl.signature_params)
    args = ", ".join(decl.call_args)
    return (
        f"\t\tpublic static {decl.return_type} {decl.name}({params})"
        f" => {decl.target}.{decl.name}({args});"
    )


# ===--- File assembly ---=== #


def format_file_header(namespace_name: str, surface: TargetSurface) -> list[str]:
    return [
        f"using {surface.namespace};",
        "",
        f"namespace {namespace_name}",
        "{",
        f"\t{SCRIPT_HOST_ANNOTATION}",
        f"\tpublic static class {surface.name}{WRAPPER_CLASS_SUFFIX}",
        "\t{",
    ]


def format_file_footer() -> list[str]:
    return ["\t}", "}"]


def assemble_wrapper_source(
    namespace_name: str,
    surface: TargetSurface,
    declarations: list[WrapperDeclaration],
) -> str:
    """Assemble the complete wrapper source file.

    File structure:
        using <surface namespace>;
                                    <- blank line
        namespace <namespace_name>
        {
            [MoonSharp.Interpreter.MoonSharpUserData]
            public static class <Surface>Wrapper
            {
                <one line per declaration>
            }
        }
                                    <- trailing newline

    An empty declarations list still yields a well-formed empty class.
    """
    parts: list[str] = format_file_header(namespace_name, surface)
    parts.extend(format_declaration(decl) for decl in declarations)
    parts.extend(format_file_footer())
    return "\n".join(parts) + "\n"


# ===--- Writer ---=== #


@dataclass(frozen=True)
class WrapperWriteResult:
    """Result of writing the generated wrapper file.

    Attributes:
        path: Absolute path of the written file.
        line_count: Number of newline characters in the written content.
        byte_count: Number of bytes written (UTF-8 encoded).
    """

    path: Path
    line_count: int
    byte_count: int


def write_wrapper(output_path: Path, source: str) -> WrapperWriteResult:
    """Write the assembled source to output_path, replacing any existing file.

    The parent directory must already exist. No rollback: a failed write can
    leave a truncated file behind.

    Raises:
        OSError: Propagated directly if opening or writing fails.
    """
    output_path = Path(output_path)
    with open(output_path, "w", encoding="utf-8", newline="\n") as fh:
        fh.write(source)
    return WrapperWriteResult(
        path=output_path.resolve(),
        line_count=source.count("\n"),
        byte_count=len(source.encode("utf-8")),
    )


# ===--- Pipeline ---=== #


@dataclass(frozen=True)
class GenerationResult:
    write_result: WrapperWriteResult
    declaration_count: int
    skipped_count: int


def process(
    namespace_name: str,
    output_path: Path,
    surface_path: Path = DEFAULT_SURFACE_XML,
    allow_pointers: bool = False,
) -> GenerationResult:
    """Generate the wrapper for the surface at surface_path.

    Stages: load surface -> filter -> render -> assemble -> write. Nothing is
    written unless every earlier stage succeeds.

    Raises:
        UnsupportedOperationError: allow_pointers was requested. Checked
            before the surface is read.
        SurfaceError: Malformed surface manifest.
        EmptyIdentifierError: A parameter name cannot be prettified.
        ET.ParseError: Manifest is not well-formed XML.
        OSError: Manifest unreadable or output write failure.
    """
    if allow_pointers:
        raise UnsupportedOperationError(POINTER_SUPPORT_MESSAGE)

    surface = load_surface(surface_path)

    logger.info("Scanning type %s", surface.full_name)
    logger.info("Found %d methods, processing..", len(surface.methods))

    methods = filter_methods(surface.methods, allow_pointers)
    skipped = len(surface.methods) - len(methods)
    logger.debug("Skipped %d non-public, identity or pointer-returning methods", skipped)

    declarations = [build_declaration(surface.name, m) for m in methods]
    source = assemble_wrapper_source(namespace_name, surface, declarations)

    logger.info("Done processing methods, writing output to the file %s", output_path)
    write_result = write_wrapper(output_path, source)
    logger.info("Done")

    return GenerationResult(
        write_result=write_result,
        declaration_count=len(declarations),
        skipped_count=skipped,
    )


# ===--- Logging ---=== #

ERROR_STYLE = "red"


class ConsoleErrorHandler(logging.Handler):
    """Print records through a rich Console in the error style.

    Rich decides per terminal whether to emit colour, including legacy
    Windows consoles, and prints plain text when stderr is redirected.
    """

    def __init__(self, console: Console | None = None, style: str = ERROR_STYLE):
        super().__init__(logging.WARNING)
        self.console = console if console is not None else Console(stderr=True)
        self.style = style
        self.setFormatter(logging.Formatter("%(message)s"))

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            self.console.print(
                message,
                style=self.style,
                markup=False,
                highlight=False,
                emoji=False,
                soft_wrap=True,
            )
        except Exception:
            self.handleError(record)


def configure_logging(level: int = logging.INFO) -> None:
    """Send progress to stdout and warnings/errors to stderr.

    Safe to call more than once; existing handlers are replaced. Records do
    not propagate, so a host's root handlers never print them a second time.
    """
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    out_handler = logging.StreamHandler(sys.stdout)
    out_handler.setLevel(level)
    out_handler.addFilter(lambda record: record.levelno < logging.WARNING)
    out_handler.setFormatter(logging.Formatter("%(message)s"))

    logger.addHandler(out_handler)
    logger.addHandler(ConsoleErrorHandler())
    logger.setLevel(level)
    logger.propagate = False


# ===--- Main generation ---=== #


def main(argv: list[str] | None = None) -> None:
    configure_logging()
    if argv is None:
        argv = sys.argv[1:]

    try:
        config = validate_arguments(argv)
    except ConfigError as err:
        logger.error(err.message)
        if err.suggestion:
            logger.error(err.suggestion)
        return

    logger.info("Starting")

    try:
        process(config.namespace_name, config.output_path)
    except UnsupportedOperationError as err:
        logger.error("Method not supported: %s", err)
    except (OSError, ET.ParseError, ValueError) as err:
        logger.error("%s", err)


if __name__ == "__main__":
    main()
