"""Checks for the Playwright package and its Chromium build."""

import importlib.util
import subprocess
import sys

from colorama import Fore, Style


def run_command(cmd: list, description: str) -> bool:
    """Run a command and return success status."""
    print(f"Installing {description}...")
    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True)
        print(f"{Fore.GREEN}✓{Style.RESET_ALL} {description} installed successfully")
        return True
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        stderr = getattr(e, 'stderr', None) or str(e)
        print(f"{Fore.RED}✗{Style.RESET_ALL} Failed to install {description}: {stderr}")
        return False


def install_browsers() -> bool:
    """Download the Chromium build Playwright drives."""
    return run_command([sys.executable, "-m", "playwright", "install", "chromium"], "Playwright Chromium")


def check_dependencies() -> bool:
    """Return True if the Python side of the browser stack is importable."""
    if importlib.util.find_spec("playwright") is None:
        print(f"{Fore.RED}[ERROR]{Style.RESET_ALL} Playwright is not installed. Run: pip install playwright")
        return False
    return True
