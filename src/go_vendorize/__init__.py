"""go-vendorize - Generate scripts that vendor the external dependencies of Go projects."""

__all__ = (
    "BuildContext",
    "GoImport",
    "GoPackage",
    "GoSourceAnalyzer",
    "ImportCollector",
    "ImportKind",
    "ImportResolver",
    "ProjectContext",
    "RenderContext",
    "Script",
    "ScriptRenderer",
    "Settings",
    "analyze_project",
    "build_vendor_script",
    "load_settings",
    "main",
    "render_script",
)

from .analyzer import GoSourceAnalyzer
from .collector import ImportCollector
from .config import Settings, load_settings
from .constraints import BuildContext
from .go_vendorize import analyze_project, main
from .renderer import ScriptRenderer, build_vendor_script, render_script
from .resolver import ImportKind, ImportResolver
from .script import Script
from .types import GoImport, GoPackage, ProjectContext, RenderContext
