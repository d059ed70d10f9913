"""Version management for fast-cc-hooks."""

import importlib.metadata
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from . import __version__

DISTRIBUTION_NAME = "fast-cc-hooks"


def get_current_version() -> str:
    """Get the current version of fast-cc-hooks."""
    return __version__


def get_installed_version() -> str:
    """Get the installed version from pip metadata."""
    try:
        return importlib.metadata.version(DISTRIBUTION_NAME)
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def get_installation_path() -> Optional[Path]:
    """Get the installation path of the fastcc package."""
    return Path(__file__).parent


def verify_installation() -> bool:
    """Check that the package's modules can be imported."""
    try:
        from fastcc import cli, config, core  # noqa: F401
        from fastcc.commit_message import parser, validator  # noqa: F401
    except ImportError:
        return False
    return True


def get_version_summary() -> str:
    """Get a brief version summary for CLI output."""
    current_version = get_current_version()
    installed_version = get_installed_version()

    if installed_version in (current_version, "unknown"):
        return f"fast-cc-hooks {current_version}"
    return f"fast-cc-hooks {current_version} (installed: {installed_version})"


def display_version_info(console: Optional[Console] = None) -> None:
    """Display version information in a panel."""
    console = console or Console()
    current_version = get_current_version()
    installed_version = get_installed_version()

    version_text = Text()
    version_text.append("fast-cc-hooks\n", style="bold blue")
    version_text.append(f"Current version: {current_version}\n", style="green")
    version_text.append(f"Installed version: {installed_version}\n", style="cyan")
    version_text.append(f"Installation path: {get_installation_path()}\n", style="yellow")

    if installed_version not in (current_version, "unknown"):
        version_text.append("\nVersion mismatch detected!\n", style="red")
        version_text.append("Consider reinstalling: pip install -e .\n", style="yellow")

    if verify_installation():
        version_text.append("\nInstallation verified successfully", style="green")
    else:
        version_text.append("\nInstallation verification failed", style="red")

    console.print(Panel(version_text, title="Version Information", border_style="blue"))
